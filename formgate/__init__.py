"""
formgate - Dependency-aware field resolution for admin record forms.

formgate decides which fields an admin edit form shows when some fields
only become relevant once other ("parent") fields have a value, and
carries submitted values across the redirect that a parent change
triggers:

- **Resolver**: independent fields, gated dependent fields, state snapshot
- **Value Lookup**: redirect bridge, then live submission, then the record
- **Data Bridge**: session-backed, read-and-clear payload across one redirect
- **Rehydration**: writes bridge data back onto the rebuilt form, turning
  raw identifiers into records for relation fields
- **Events**: immutable notifications with ordered, synchronous handlers

Quick Start:
    >>> from formgate import DependencyFieldResolver, FieldDescriptor
    >>>
    >>> resolver = (
    ...     DependencyFieldResolver(bridge, contexts)
    ...     .configure_fields(lambda: [
    ...         FieldDescriptor.text("name"),
    ...         FieldDescriptor.text("category"),
    ...     ])
    ...     .depends_on("category", lambda v: FieldDescriptor.text("subcategory"))
    ... )
    >>> [f.name for f in resolver.resolve()]
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports for convenient imports
from formgate.accessor import PropertyAccessError, PropertyAccessor
from formgate.bridge import ResolverDataBridge
from formgate.config import FormgateSettings
from formgate.context import (
    AdminContext,
    AdminContextProvider,
    ContextVarProvider,
    EntityDto,
    RequestData,
    StaticContextProvider,
)
from formgate.errors import FormgateError
from formgate.events import (
    DataDto,
    DataRecoveredEvent,
    DependencyChangedEvent,
    EventBus,
    FieldRehydrateEvent,
    FieldsResolvedEvent,
    PreCreateStateEvent,
)
from formgate.fields import FieldDescriptor, FieldKind
from formgate.forms import Form, FormField
from formgate.rehydration import RehydrationPipeline
from formgate.relations import (
    InMemoryRelationStore,
    RelationConfig,
    RelationStore,
    normalize_relation_value,
)
from formgate.resolver import (
    DependencyConfigurationError,
    DependencyFieldResolver,
    DependencyRule,
    ValueLookup,
)
from formgate.session import (
    InMemorySession,
    SessionProvider,
    SessionStore,
    SessionUnavailableError,
    StaticSessionProvider,
)

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Resolver
    "DependencyFieldResolver",
    "DependencyRule",
    "DependencyConfigurationError",
    "ValueLookup",
    # Fields and forms
    "FieldDescriptor",
    "FieldKind",
    "Form",
    "FormField",
    # Bridge and session
    "ResolverDataBridge",
    "SessionStore",
    "SessionProvider",
    "InMemorySession",
    "StaticSessionProvider",
    "SessionUnavailableError",
    # Context
    "AdminContext",
    "AdminContextProvider",
    "StaticContextProvider",
    "ContextVarProvider",
    "EntityDto",
    "RequestData",
    # Events
    "EventBus",
    "DataDto",
    "DataRecoveredEvent",
    "FieldRehydrateEvent",
    "FieldsResolvedEvent",
    "PreCreateStateEvent",
    "DependencyChangedEvent",
    # Relations
    "RelationStore",
    "RelationConfig",
    "InMemoryRelationStore",
    "normalize_relation_value",
    # Rehydration
    "RehydrationPipeline",
    # Misc
    "PropertyAccessor",
    "PropertyAccessError",
    "FormgateSettings",
    "FormgateError",
]
