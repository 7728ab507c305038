from accessor.platform.security.context import AuthContext
from accessor.platform.security.errors import (
    AccessorError,
    AuthorizationError,
    FieldDenial,
    NoAccessError,
    UnknownObjectError,
)
from accessor.platform.security.evaluator import AccessEvaluator, DenialMode, collect_removed_fields
from accessor.platform.security.policies import (
    DbPolicyBackend,
    FieldAction,
    InMemoryPolicyBackend,
    ObjectAction,
    PolicyBackend,
    get_policy_backend,
    set_policy_backend,
)
from accessor.platform.security.reporter import ReportRow, build_report, format_row, object_rows
from accessor.platform.security.schema import (
    FieldDefinition,
    ObjectDefinition,
    ObjectRegistry,
    PolicySchemaService,
    SchemaService,
)
from accessor.platform.security.stripping import PolicyStrippingBackend, StrippingBackend
from accessor.platform.security.types import (
    AccessDecision,
    AccessType,
    FieldDescription,
    Record,
    SchemaDescription,
)

__all__ = [
    "AccessDecision",
    "AccessEvaluator",
    "AccessType",
    "AccessorError",
    "AuthContext",
    "AuthorizationError",
    "DbPolicyBackend",
    "DenialMode",
    "FieldAction",
    "FieldDefinition",
    "FieldDenial",
    "FieldDescription",
    "InMemoryPolicyBackend",
    "NoAccessError",
    "ObjectAction",
    "ObjectDefinition",
    "ObjectRegistry",
    "PolicyBackend",
    "PolicySchemaService",
    "PolicyStrippingBackend",
    "Record",
    "ReportRow",
    "SchemaDescription",
    "SchemaService",
    "StrippingBackend",
    "UnknownObjectError",
    "build_report",
    "collect_removed_fields",
    "format_row",
    "get_policy_backend",
    "object_rows",
    "set_policy_backend",
]
