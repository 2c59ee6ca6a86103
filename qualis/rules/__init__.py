"""Qualis – Rule catalog package.

This package contains rule definition types, parameter validation and the
storage helper used to resolve rules by key.
"""

from qualis.rules.types import RuleDefinition, RuleKey, RuleParam, Severity
from qualis.rules.validation import InvalidParamValueError, validate_param_value
from qualis.rules.storage import RuleNotFoundError, RuleStorage
