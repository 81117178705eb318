"""Generic resource reconciliation: records, policies, classifier and engine."""

from deploymeta.resources.adapter import ErrorCode, RemoteAdapter, RemoteError
from deploymeta.resources.classifier import ErrorClass, classify
from deploymeta.resources.policy import (
    POLICIES,
    DeleteSemantics,
    FieldSpec,
    ResourcePolicy,
    ResourceSchema,
    UpdateSemantics,
    get_policy,
    list_policies,
)
from deploymeta.resources.reconciler import ApplyResult, Operation, Reconciler, apply
from deploymeta.resources.record import (
    AttributeRecord,
    FieldKind,
    diff_fields,
    normalize,
    records_equal,
    values_equal,
)

__all__ = [
    # Records and comparison
    "AttributeRecord",
    "FieldKind",
    "diff_fields",
    "normalize",
    "records_equal",
    "values_equal",
    # Policies
    "POLICIES",
    "DeleteSemantics",
    "FieldSpec",
    "ResourcePolicy",
    "ResourceSchema",
    "UpdateSemantics",
    "get_policy",
    "list_policies",
    # Remote contract
    "ErrorCode",
    "RemoteAdapter",
    "RemoteError",
    "ErrorClass",
    "classify",
    # Engine
    "ApplyResult",
    "Operation",
    "Reconciler",
    "apply",
]
