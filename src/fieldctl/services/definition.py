"""Form definitions — fields, their rules, and cross-field rules for one form.

A :class:`FormDefinition` is built once (in code, or from a YAML/TOML file
by :func:`load_form_definition`) and shared read-only by every session on
that form. All load-time checks happen here: mask compilation, attribute
invariants, rule parameters, and the acyclic rule graph.

Example YAML::

    form: account-update
    fields:
      - name: account_id
        label: Account ID
        mask: "9(11)"
        required: true
        attributes: [UNPROT, IC]
      - name: credit_limit
        mask: "+ZZZ,ZZZ,ZZZ.99"
      - name: cash_limit
        mask: "+ZZZ,ZZZ,ZZZ.99"
    cross_rules:
      - id: cash-within-credit
        type: not_exceeding
        amount: cash_limit
        limit: credit_limit
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from fieldctl.domain.catalog import (
    BUILTIN_PREDICATES,
    date_parts_rule,
    linked_entity_rule,
    not_exceeding_rule,
    state_zip_rule,
)
from fieldctl.domain.errors import FormDefinitionError
from fieldctl.domain.fields import FieldAttribute, FieldPosition, create_field_attribute
from fieldctl.domain.rules import AnyCrossFieldRule, FieldValidationRule, Predicate
from fieldctl.domain.types import Emphasis, Protection, RuleKind
from fieldctl.services.cross_field import RuleGraph

# ---------------------------------------------------------------------------
# FormDefinition
# ---------------------------------------------------------------------------


class FormDefinition:
    """Immutable definition of one form.

    Raises:
        FormDefinitionError: duplicate field names, more than one initial
            cursor field, rules for unknown fields, or a rule cycle.
    """

    def __init__(
        self,
        name: str,
        fields: Sequence[FieldAttribute],
        field_rules: Mapping[str, Sequence[FieldValidationRule]] | None = None,
        cross_rules: Sequence[AnyCrossFieldRule] = (),
    ) -> None:
        if not fields:
            raise FormDefinitionError(f"form {name!r} has no fields")
        names = [f.name for f in fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise FormDefinitionError(f"form {name!r} declares fields twice: {duplicates}")
        focused = [f.name for f in fields if f.initial_cursor]
        if len(focused) > 1:
            msg = f"form {name!r}: more than one initial cursor field {focused}"
            raise FormDefinitionError(msg)
        rules = dict(field_rules or {})
        unknown = sorted(set(rules) - set(names))
        if unknown:
            raise FormDefinitionError(f"form {name!r} has rules for unknown fields {unknown}")

        self._name = name
        self._fields = {f.name: f for f in fields}
        self._field_rules = {n: tuple(rules.get(n, ())) for n in names}
        self._graph = RuleGraph(names, cross_rules)

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> tuple[FieldAttribute, ...]:
        """Fields in declaration order."""
        return tuple(self._fields.values())

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self._fields)

    @property
    def cross_rules(self) -> tuple[AnyCrossFieldRule, ...]:
        return self._graph.rules

    @property
    def graph(self) -> RuleGraph:
        return self._graph

    def field(self, name: str) -> FieldAttribute:
        try:
            return self._fields[name]
        except KeyError:
            raise FormDefinitionError(f"form {self._name!r} has no field {name!r}") from None

    def rules_for(self, name: str) -> tuple[FieldValidationRule, ...]:
        return self._field_rules.get(name, ())

    def initial_values(self) -> dict[str, str]:
        return {f.name: f.initial_value or "" for f in self._fields.values()}

    def __repr__(self) -> str:
        return (
            f"FormDefinition({self._name!r}, fields={len(self._fields)}, "
            f"rules={len(self.cross_rules)})"
        )


# ---------------------------------------------------------------------------
# Declarative spec models (file format)
# ---------------------------------------------------------------------------


class FieldRuleSpec(BaseModel):
    """One entry of a field's ``rules`` list."""

    model_config = {"frozen": True, "extra": "forbid"}

    kind: RuleKind
    message: str | None = None
    regex: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: str | int | None = None
    maximum: str | int | None = None
    values: list[str | int] = Field(default_factory=list)
    predicate: str | None = None


class FieldSpec(BaseModel):
    """One entry of the ``fields`` list."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str
    label: str | None = None
    mask: str | None = None
    max_length: int | None = None
    required: bool = False
    protection: Protection | None = None
    emphasis: Emphasis | None = None
    attributes: list[str] | None = None
    initial_value: str | None = None
    position: FieldPosition | None = None
    initial_cursor: bool = False
    rules: list[FieldRuleSpec] = Field(default_factory=list)


class _CrossRuleSpecBase(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    dependents: list[str] | None = None
    message: str | None = None


class DatePartsSpec(_CrossRuleSpecBase):
    type: Literal["date_parts"]
    year: str
    month: str
    day: str


class StateZipSpec(_CrossRuleSpecBase):
    type: Literal["state_zip"]
    state: str
    zip_code: str


class NotExceedingSpec(_CrossRuleSpecBase):
    type: Literal["not_exceeding"]
    amount: str
    limit: str


class LinkedEntitySpec(_CrossRuleSpecBase):
    type: Literal["linked_entity"]
    source: str
    target: str
    table: dict[str, str]


CrossRuleSpec = Annotated[
    DatePartsSpec | StateZipSpec | NotExceedingSpec | LinkedEntitySpec,
    Field(discriminator="type"),
]


class FormSpec(BaseModel):
    """Top-level form definition document."""

    model_config = {"frozen": True, "extra": "forbid"}

    form: str
    fields: list[FieldSpec]
    cross_rules: list[CrossRuleSpec] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def _build_field(spec: FieldSpec) -> FieldAttribute:
    data: dict[str, Any] = {
        "label": spec.label,
        "input_mask": spec.mask,
        "max_length": spec.max_length,
        "required": spec.required,
        "initial_value": spec.initial_value,
        "position": spec.position,
    }
    if spec.attributes is not None:
        if spec.protection is not None or spec.emphasis is not None:
            msg = f"field {spec.name!r}: give either attributes or protection/emphasis"
            raise FormDefinitionError(msg)
        if spec.initial_cursor:
            data["initial_cursor"] = True
        return FieldAttribute.from_legacy_attributes(spec.name, spec.attributes, **data)

    data.update(name=spec.name, initial_cursor=spec.initial_cursor)
    if spec.protection is not None:
        data["protection"] = spec.protection
    if spec.emphasis is not None:
        data["emphasis"] = spec.emphasis
    return create_field_attribute(data)


def _build_rule(
    field_name: str, spec: FieldRuleSpec, predicates: Mapping[str, Predicate]
) -> FieldValidationRule:
    match spec.kind:
        case RuleKind.REQUIRED:
            return FieldValidationRule.required(spec.message)
        case RuleKind.PATTERN:
            return FieldValidationRule.pattern(spec.regex, spec.message)
        case RuleKind.LENGTH:
            return FieldValidationRule.length(spec.min_length, spec.max_length, spec.message)
        case RuleKind.NUMERIC_RANGE:
            return FieldValidationRule.numeric_range(spec.minimum, spec.maximum, spec.message)
        case RuleKind.ENUMERATED_VALUES:
            return FieldValidationRule.one_of([str(v) for v in spec.values], spec.message)
        case RuleKind.CUSTOM:
            if spec.predicate is None:
                raise FormDefinitionError(f"field {field_name!r}: custom rule needs a predicate")
            if spec.predicate not in predicates:
                known = ", ".join(sorted(predicates))
                msg = f"field {field_name!r}: unknown predicate {spec.predicate!r} (known: {known})"
                raise FormDefinitionError(msg)
            return FieldValidationRule.custom(
                predicates[spec.predicate], spec.message, name=spec.predicate
            )
    raise FormDefinitionError(f"field {field_name!r}: unsupported rule kind {spec.kind!r}")


def _build_cross_rule(
    spec: DatePartsSpec | StateZipSpec | NotExceedingSpec | LinkedEntitySpec,
    labels: Mapping[str, str],
) -> AnyCrossFieldRule:
    dependents = tuple(spec.dependents) if spec.dependents is not None else None
    if isinstance(spec, DatePartsSpec):
        kwargs: dict[str, Any] = {"dependents": dependents}
        if spec.message is not None:
            kwargs["message"] = spec.message
        return date_parts_rule(spec.id, spec.year, spec.month, spec.day, **kwargs)
    if isinstance(spec, StateZipSpec):
        return state_zip_rule(
            spec.id, spec.state, spec.zip_code, dependents=dependents, message=spec.message
        )
    if isinstance(spec, NotExceedingSpec):
        return not_exceeding_rule(
            spec.id,
            spec.amount,
            spec.limit,
            amount_label=labels.get(spec.amount),
            limit_label=labels.get(spec.limit),
            dependents=dependents,
            message=spec.message,
        )
    return linked_entity_rule(
        spec.id, spec.source, spec.target, spec.table, dependents=dependents, message=spec.message
    )


def build_form_definition(
    data: Mapping[str, Any],
    *,
    predicates: Mapping[str, Predicate] | None = None,
) -> FormDefinition:
    """Build a :class:`FormDefinition` from a parsed definition document.

    *predicates* adds named custom predicates (typically collected from
    plugins) to the built-in ones.

    Raises:
        CompileError: a field mask is malformed.
        FormDefinitionError: the document or any invariant is invalid.
    """
    try:
        spec = FormSpec.model_validate(dict(data))
    except ValidationError as exc:
        raise FormDefinitionError(f"invalid form definition: {exc}") from exc

    named: dict[str, Predicate] = {**BUILTIN_PREDICATES, **(predicates or {})}
    fields = [_build_field(f) for f in spec.fields]
    field_rules = {f.name: [_build_rule(f.name, r, named) for r in f.rules] for f in spec.fields}
    labels = {f.name: f.display_label for f in fields}
    cross_rules = [_build_cross_rule(r, labels) for r in spec.cross_rules]
    return FormDefinition(spec.form, fields, field_rules, cross_rules)


def read_definition_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or TOML definition file into a plain dict."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FormDefinitionError(f"cannot read {path}: {exc}") from exc

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            data = YAML(typ="safe").load(raw)
        except YAMLError as exc:
            raise FormDefinitionError(f"invalid YAML in {path}: {exc}") from exc
    elif suffix == ".toml":
        try:
            data = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise FormDefinitionError(f"invalid TOML in {path}: {exc}") from exc
    else:
        raise FormDefinitionError(f"unsupported definition format {suffix or path.name!r}")

    if not isinstance(data, dict):
        raise FormDefinitionError(f"{path} does not contain a mapping")
    return data


def load_form_definition(
    path: Path | str,
    *,
    predicates: Mapping[str, Predicate] | None = None,
) -> FormDefinition:
    """Load and build a form definition from a ``.yaml``/``.yml``/``.toml`` file."""
    return build_form_definition(read_definition_file(Path(path)), predicates=predicates)
