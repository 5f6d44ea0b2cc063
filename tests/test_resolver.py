"""
Tests for the dependency field resolver.

Tests configuration, gating, ordering, the state snapshot and the
Name/Category/Subcategory scenario.
"""
import json
from unittest.mock import MagicMock

import pytest

from formgate import (
    DependencyConfigurationError,
    DependencyFieldResolver,
    EventBus,
    FieldDescriptor,
    FieldsResolvedEvent,
    FormgateSettings,
    PreCreateStateEvent,
    StaticContextProvider,
)
from formgate.resolver import is_satisfied

STATE = "__resolver_state"


def _names(fields):
    return [f.name for f in fields]


def _state(fields):
    state_field = fields[-1]
    assert state_field.name == STATE
    return json.loads(state_field.option("data"))


@pytest.fixture
def make_resolver(bridge, make_context):
    """Resolver over a record dict and an optional submission."""

    def _make(record=None, submitted=None, events=None, **kwargs):
        context = make_context(instance=record or {}, submitted=submitted)
        return DependencyFieldResolver(
            bridge,
            StaticContextProvider(context),
            events=events,
            **kwargs,
        )

    return _make


def name_and_category():
    return [FieldDescriptor.text("Name"), FieldDescriptor.text("Category")]


class TestGating:
    """Tests for the satisfied/unsatisfied parent rule."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_unsatisfied_values(self, value):
        assert is_satisfied(value) is False

    @pytest.mark.parametrize("value", [0, False, [], "0", " ", {}, 0.0])
    def test_satisfied_values(self, value):
        assert is_satisfied(value) is True

    def test_producer_called_once_with_resolved_mapping(self, make_resolver):
        producer = MagicMock(return_value=FieldDescriptor.text("Subcategory"))
        resolver = make_resolver(
            record={"Category": "books", "Shelf": 0},
        ).depends_on(["Category", "Shelf"], producer)

        list(resolver.resolve())

        producer.assert_called_once_with({"Category": "books", "Shelf": 0})

    def test_producer_never_called_with_unsatisfied_parent(self, make_resolver):
        producer = MagicMock(return_value=FieldDescriptor.text("Subcategory"))
        resolver = make_resolver(
            record={"Category": "books", "Shelf": ""},
        ).depends_on(["Category", "Shelf"], producer)

        fields = list(resolver.resolve())

        producer.assert_not_called()
        assert "Subcategory" not in _names(fields)

    def test_missing_parent_skips_rule(self, make_resolver):
        producer = MagicMock()
        resolver = make_resolver(record={}).depends_on("Category", producer)

        list(resolver.resolve())

        producer.assert_not_called()

    def test_false_and_zero_parents_unlock(self, make_resolver):
        resolver = make_resolver(record={"active": False, "count": 0}).depends_on(
            ["active", "count"], lambda v: FieldDescriptor.text("detail")
        )

        assert "detail" in _names(resolver.resolve())


class TestResolveOrder:
    """Tests for the order and shape of resolved fields."""

    def test_independent_then_dependent_then_state(self, make_resolver):
        resolver = (
            make_resolver(record={"a": "x", "b": "y"})
            .configure_fields(lambda: [FieldDescriptor.text("a"), FieldDescriptor.text("b")])
            .depends_on("b", lambda v: [FieldDescriptor.text("d2"), FieldDescriptor.text("d3")])
            .depends_on("a", lambda v: FieldDescriptor.text("d1"))
        )

        assert _names(resolver.resolve()) == ["a", "b", "d2", "d3", "d1", STATE]

    def test_state_field_always_last_even_without_rules(self, make_resolver):
        resolver = make_resolver().configure_fields(name_and_category)

        fields = list(resolver.resolve())

        assert _names(fields) == ["Name", "Category", STATE]
        assert _state(fields) == {}

    def test_state_field_is_hidden_unmapped(self, make_resolver):
        state_field = list(make_resolver().resolve())[-1]

        assert state_field.widget == "hidden"
        assert state_field.mapped is False
        assert state_field.only_on_forms is True

    def test_producer_returning_none_yields_nothing(self, make_resolver):
        resolver = make_resolver(record={"a": "x"}).depends_on("a", lambda v: None)

        assert _names(resolver.resolve()) == [STATE]

    def test_configure_fields_replaces_previous_set(self, make_resolver):
        resolver = (
            make_resolver()
            .configure_fields(lambda: [FieldDescriptor.text("old")])
            .configure_fields(lambda: [FieldDescriptor.text("new")])
        )

        assert _names(resolver.resolve()) == ["new", STATE]

    def test_configure_fields_materializes_generator_once(self, make_resolver):
        calls = []

        def producer():
            calls.append(1)
            yield FieldDescriptor.text("a")

        resolver = make_resolver().configure_fields(producer)
        list(resolver.resolve())
        list(resolver.resolve())

        assert len(calls) == 1
        assert _names(resolver.resolve()) == ["a", STATE]

    def test_resolve_is_lazy(self, make_resolver):
        producer = MagicMock(return_value=FieldDescriptor.text("d"))
        resolver = make_resolver(record={"a": "x"}).depends_on("a", producer)

        iterator = resolver.resolve()
        producer.assert_not_called()

        list(iterator)
        producer.assert_called_once()

    def test_no_caching_between_passes(self, bridge, make_context):
        """A later pass reflects changed inputs."""
        record = {"Category": ""}
        resolver = DependencyFieldResolver(
            bridge, StaticContextProvider(make_context(instance=record))
        ).depends_on("Category", lambda v: FieldDescriptor.text("Subcategory"))

        assert "Subcategory" not in _names(resolver.resolve())
        record["Category"] = "books"
        assert "Subcategory" in _names(resolver.resolve())

    def test_producer_error_propagates(self, make_resolver):
        def broken(values):
            raise RuntimeError("bad rule")

        resolver = make_resolver(record={"a": "x"}).depends_on("a", broken)

        with pytest.raises(RuntimeError, match="bad rule"):
            list(resolver.resolve())

    def test_fluent_api_returns_self(self, make_resolver):
        resolver = make_resolver()

        assert resolver.configure_fields(list) is resolver
        assert resolver.depends_on("a", lambda v: None) is resolver


class TestRuleConfiguration:
    """Tests for rule registration."""

    def test_single_parent_normalized(self, make_resolver):
        resolver = make_resolver().depends_on("Category", lambda v: None)

        assert resolver.rules[0].parents == ("Category",)

    def test_duplicate_parents_in_rule_collapsed(self, make_resolver):
        resolver = make_resolver().depends_on(["a", "b", "a"], lambda v: None)

        assert resolver.rules[0].parents == ("a", "b")

    def test_monitored_parents_union(self, make_resolver):
        resolver = (
            make_resolver()
            .depends_on(["a", "b"], lambda v: None)
            .depends_on(["b", "c"], lambda v: None)
        )

        assert resolver.monitored_parents == ["a", "b", "c"]

    def test_empty_parents_rejected(self, make_resolver):
        with pytest.raises(DependencyConfigurationError):
            make_resolver().depends_on([], lambda v: None)

    def test_blank_parent_name_rejected(self, make_resolver):
        with pytest.raises(DependencyConfigurationError):
            make_resolver().depends_on(["a", ""], lambda v: None)

    def test_non_callable_producer_rejected(self, make_resolver):
        with pytest.raises(DependencyConfigurationError):
            make_resolver().depends_on("a", "not callable")


class TestStateSnapshot:
    """Tests for the embedded parent-value snapshot."""

    def test_snapshot_contains_every_monitored_parent(self, make_resolver):
        resolver = (
            make_resolver(record={"a": "x", "c": 3})
            .depends_on(["a", "b"], lambda v: None)
            .depends_on(["b", "c"], lambda v: None)
        )

        assert _state(list(resolver.resolve())) == {"a": "x", "b": None, "c": 3}

    def test_snapshot_idempotent(self, make_resolver):
        resolver = make_resolver(record={"a": "x"}).depends_on("a", lambda v: None)

        first = list(resolver.resolve())[-1]
        second = list(resolver.resolve())[-1]

        assert first.option("data") == second.option("data")

    def test_relation_parent_stored_by_identifier(self, make_resolver, categories):
        resolver = (
            make_resolver(record={"category": categories.get(7)})
            .configure_fields(lambda: [FieldDescriptor.for_relation("category", categories)])
            .depends_on("category", lambda v: None)
        )

        assert _state(list(resolver.resolve())) == {"category": 7}

    def test_custom_state_field_name(self, make_resolver):
        settings = FormgateSettings(state_field_name="_deps")
        resolver = make_resolver(settings=settings)

        assert _names(resolver.resolve()) == ["_deps"]

    def test_pre_create_state_handler_can_replace_state(self, make_resolver):
        bus = EventBus()
        bus.subscribe(
            PreCreateStateEvent,
            lambda e: e.with_state(e.state.copy().set("extra", "1")),
        )
        resolver = make_resolver(record={"a": "x"}, events=bus).depends_on("a", lambda v: None)

        assert _state(list(resolver.resolve())) == {"a": "x", "extra": "1"}


class TestResolveFields:
    """Tests for eager resolution with the FieldsResolvedEvent hook."""

    def test_returns_descriptors_without_events(self, make_resolver):
        resolver = make_resolver().configure_fields(name_and_category)

        assert _names(resolver.resolve_fields()) == ["Name", "Category", STATE]

    def test_handler_can_replace_field_list(self, make_resolver):
        bus = EventBus()
        bus.subscribe(
            FieldsResolvedEvent,
            lambda e: e.with_fields([f for f in e.fields if f.name != "Name"]),
        )
        resolver = make_resolver(events=bus).configure_fields(name_and_category)

        assert _names(resolver.resolve_fields()) == ["Category", STATE]

    def test_non_descriptors_filtered_out(self, make_resolver):
        bus = EventBus()
        bus.subscribe(FieldsResolvedEvent, lambda e: e.with_fields([*e.fields, "junk", 42]))
        resolver = make_resolver(events=bus).configure_fields(name_and_category)

        assert _names(resolver.resolve_fields()) == ["Name", "Category", STATE]


class TestIsFormPage:
    def test_edit_and_new_are_form_pages(self, make_resolver):
        resolver = make_resolver()

        assert resolver.is_form_page("edit") is True
        assert resolver.is_form_page("new") is True
        assert resolver.is_form_page("index") is False
        assert resolver.is_form_page("detail") is False


class TestCategoryScenario:
    """End-to-end: Name, Category and a Category-dependent Subcategory."""

    @staticmethod
    def subcategory(values):
        assert values == {"Category": "books"}
        return FieldDescriptor.text("Subcategory")

    def _resolver(self, bridge, make_context, record):
        context = make_context(instance=record)
        return (
            DependencyFieldResolver(bridge, StaticContextProvider(context))
            .configure_fields(name_and_category)
            .depends_on(["Category"], self.subcategory)
        )

    def test_category_unset(self, bridge, make_context):
        resolver = self._resolver(bridge, make_context, {"Name": "x"})

        fields = list(resolver.resolve())

        assert _names(fields) == ["Name", "Category", STATE]
        assert _state(fields) == {"Category": None}

    def test_category_set(self, bridge, make_context):
        resolver = self._resolver(bridge, make_context, {"Name": "x", "Category": "books"})

        fields = list(resolver.resolve())

        assert _names(fields) == ["Name", "Category", "Subcategory", STATE]
        assert _state(fields) == {"Category": "books"}

    def test_category_from_bridge(self, make_bridge, make_context):
        """After a redirect the bridge value unlocks the rule."""
        make_bridge().persist({"Category": "books"})
        resolver = self._resolver(make_bridge(), make_context, {"Name": "x"})

        assert _names(resolver.resolve()) == ["Name", "Category", "Subcategory", STATE]


class TestDetectChanges:
    """Tests for comparing a submission with its embedded snapshot."""

    def test_changed_parent_detected(self, make_resolver):
        resolver = make_resolver().depends_on("category", lambda v: None)
        submitted = {"category": "2", STATE: json.dumps({"category": 7})}

        assert resolver.detect_changes(submitted) == ["category"]

    def test_unchanged_parent_ignored(self, make_resolver):
        resolver = make_resolver().depends_on("category", lambda v: None)
        submitted = {"category": "7", STATE: json.dumps({"category": 7})}

        assert resolver.detect_changes(submitted) == []

    def test_missing_state_means_no_change(self, make_resolver):
        resolver = make_resolver().depends_on("category", lambda v: None)

        assert resolver.detect_changes({"category": "2"}) == []

    def test_snapshot_round_trip_detects_nothing(self, make_resolver, categories):
        """Submitting the form as rendered changes nothing."""
        resolver = (
            make_resolver(record={"category": categories.get(7)})
            .configure_fields(lambda: [FieldDescriptor.for_relation("category", categories)])
            .depends_on("category", lambda v: None)
        )
        state = list(resolver.resolve())[-1].option("data")

        assert resolver.detect_changes({"category": "7", STATE: state}) == []
