from .annotations import Mutability
from .annotations import Returned
from .annotations import Uniqueness
from .enforcer import Option
from .enforcer import Results
from .enforcer import SchemaEnforcer
from .evaluator import FilterEvaluator
from .evaluator import SchemaAwareFilterEvaluator
from .evaluator import compare_values
from .evaluator import evaluate
from .exceptions import InvalidFilterException
from .exceptions import InvalidPathException
from .exceptions import InvalidSyntaxException
from .exceptions import InvalidValueException
from .exceptions import MutabilityException
from .exceptions import NoTargetException
from .exceptions import SCIMException
from .filters import CombiningFilter
from .filters import ComparisonFilter
from .filters import ComplexValueFilter
from .filters import Filter
from .filters import FilterType
from .filters import NotFilter
from .filters import PresentFilter
from .json_utils import add_value
from .json_utils import find_matching_paths
from .json_utils import get_values
from .json_utils import path_exists
from .json_utils import remove_values
from .json_utils import replace_value
from .parser import parse_filter
from .parser import parse_path
from .patch import PATCH_OP_SCHEMA
from .patch import PatchOperation
from .patch import PatchRequest
from .path import Path
from .path import PathElement
from .schema import COMMON_ATTRIBUTES
from .schema import SCHEMAS_ATTRIBUTE
from .schema import Attribute
from .schema import ResourceType
from .schema import Schema
from .schema import SchemaExtension

__all__ = [
    "Attribute",
    "COMMON_ATTRIBUTES",
    "CombiningFilter",
    "ComparisonFilter",
    "ComplexValueFilter",
    "Filter",
    "FilterEvaluator",
    "FilterType",
    "InvalidFilterException",
    "InvalidPathException",
    "InvalidSyntaxException",
    "InvalidValueException",
    "Mutability",
    "MutabilityException",
    "NoTargetException",
    "NotFilter",
    "Option",
    "PATCH_OP_SCHEMA",
    "Path",
    "PathElement",
    "PatchOperation",
    "PatchRequest",
    "PresentFilter",
    "ResourceType",
    "Results",
    "Returned",
    "SCHEMAS_ATTRIBUTE",
    "SCIMException",
    "Schema",
    "SchemaAwareFilterEvaluator",
    "SchemaEnforcer",
    "SchemaExtension",
    "Uniqueness",
    "add_value",
    "compare_values",
    "evaluate",
    "find_matching_paths",
    "get_values",
    "parse_filter",
    "parse_path",
    "path_exists",
    "remove_values",
    "replace_value",
]
