"""flask-rpcrest: REST routes and documentation derived from RPC operation names."""

__version__ = "0.1.0"

from flask_rpcrest.extension import RpcRest

from flask_rpcrest.backends import (
    BackendConnectionError,
    BackendError,
    BackendFault,
    OperationBackend,
)
from flask_rpcrest.errors import (
    BadRequest,
    Conflict,
    InternalError,
    NotFound,
    RemoteFault,
    RpcRestError,
    ServiceUnavailable,
    Unauthenticated,
)
from flask_rpcrest.naming import OperationRoute, RouteKind, classify, resource_segment, resource_tag
from flask_rpcrest.transform import PathParameter, RequestData, transform_arguments

__all__ = [
    "RpcRest",
    "__version__",
    "BackendConnectionError",
    "BackendError",
    "BackendFault",
    "OperationBackend",
    "BadRequest",
    "Conflict",
    "InternalError",
    "NotFound",
    "RemoteFault",
    "RpcRestError",
    "ServiceUnavailable",
    "Unauthenticated",
    "OperationRoute",
    "RouteKind",
    "classify",
    "resource_segment",
    "resource_tag",
    "PathParameter",
    "RequestData",
    "transform_arguments",
]
