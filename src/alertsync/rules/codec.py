"""
Rule template codec.

Converts stored alert definition templates and ruler payloads to and
from ``Rule``/``RuleGroup`` values, and builds the final rule for a
definition from its template and current parameter overrides.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

import structlog
import yaml
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from alertsync.core.errors import TemplateDecodeError
from alertsync.domain.models import ParameterOverrides
from alertsync.rules.duration import format_duration
from alertsync.rules.models import Rule, RuleGroup
from alertsync.rules.template import TemplateData, disable_expression, render_expression

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

THRESHOLD_LABEL = "threshold"
DURATION_LABEL = "duration"


class DocumentError(ValueError):
    """Raised when a YAML document does not describe the expected model."""


def _dump(data: Dict[str, Any]) -> str:
    # Infinite width keeps long expressions on one line.
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        width=float("inf"),
    )


def load_document(blob: str | bytes, model: Type[ModelT], *, allow_empty: bool = False) -> ModelT:
    """Parse a YAML mapping into ``model``.

    Raises:
        DocumentError: if the YAML is malformed or does not fit the model
    """
    try:
        data = yaml.safe_load(blob)
    except yaml.YAMLError as exc:
        raise DocumentError(f"malformed YAML: {exc}") from exc

    if data is None and allow_empty:
        data = {}
    if not isinstance(data, dict):
        raise DocumentError(f"expected a mapping, got {type(data).__name__}")

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise DocumentError(f"unexpected document shape: {problems}") from exc


def decode_rule(blob: str | bytes) -> Rule:
    """Decode a stored alert definition template.

    Raises:
        TemplateDecodeError: if the template is not a well-formed rule
    """
    try:
        return load_document(blob, Rule)
    except DocumentError as exc:
        raise TemplateDecodeError(f"failed to decode rule template: {exc}") from exc


def encode_rule(rule: Rule) -> str:
    """Encode a rule as YAML with sorted keys."""
    return _dump(rule.to_dict())


def decode_group(blob: str | bytes) -> RuleGroup:
    """Decode a rule group document; an empty document is an empty group.

    Raises:
        DocumentError: if the document is not a rule group
    """
    return load_document(blob, RuleGroup, allow_empty=True)


def encode_group(group: RuleGroup) -> str:
    """Encode a rule group as YAML with sorted keys."""
    return _dump(group.to_dict())


def apply_overrides(
    labels: Dict[str, str],
    threshold: Optional[int] = None,
    duration: Optional[int] = None,
) -> Dict[str, str]:
    """Return ``labels`` with the reserved threshold/duration labels updated."""
    updated = dict(labels)
    if threshold is not None:
        updated[THRESHOLD_LABEL] = str(threshold)
    if duration is not None:
        updated[DURATION_LABEL] = format_duration(duration)
    return updated


def build_rule(template: str | bytes, overrides: ParameterOverrides) -> Rule:
    """Build the rule to push for an alert definition.

    Steps:
        1. Decode the stored template
        2. Write the override threshold/duration into the reserved labels
        3. Render the expression from those labels and validate it
        4. Make the expression inert if the definition is disabled

    Raises:
        TemplateDecodeError: if the stored template is malformed
        ExpressionError: if the expression cannot be rendered or validated
    """
    draft = decode_rule(template)
    labels = apply_overrides(draft.labels, overrides.threshold, overrides.duration)

    data = TemplateData(
        threshold=labels.get(THRESHOLD_LABEL, ""),
        duration=labels.get(DURATION_LABEL, ""),
    )
    expr = render_expression(data, draft.expr)

    if overrides.enabled is False:
        expr = disable_expression(expr)

    logger.debug(
        "rule_built",
        alert=draft.alert,
        threshold=data.threshold,
        duration=data.duration,
        enabled=overrides.enabled,
    )
    return draft.model_copy(update={"labels": labels, "expr": expr})


def update_template_with_values(
    template: str | bytes,
    duration: Optional[int] = None,
    threshold: Optional[int] = None,
) -> str:
    """Rewrite a stored template's threshold/duration labels.

    The expression is left untouched; it is rendered when the rule is built.

    Raises:
        TemplateDecodeError: if the stored template is malformed
    """
    rule = decode_rule(template)
    labels = apply_overrides(rule.labels, threshold, duration)
    return encode_rule(rule.model_copy(update={"labels": labels}))
