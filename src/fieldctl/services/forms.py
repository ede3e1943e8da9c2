"""Service facade used by the CLI — masks, amounts, and form definitions.

Each method returns a :class:`ServiceResult`; domain errors become
structured ``ServiceError`` payloads instead of propagating.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from fieldctl.config.logging import form_context
from fieldctl.domain.errors import FieldctlError
from fieldctl.domain.masks import PictureMask, compile_mask
from fieldctl.domain.money import MonetaryAmount
from fieldctl.domain.types import MaskKind
from fieldctl.services.base import BaseService
from fieldctl.services.definition import FormDefinition, load_form_definition
from fieldctl.services.payload import build_payload
from fieldctl.services.result import ServiceError, ServiceResult
from fieldctl.services.session import FormSession
from fieldctl.services.telemetry import trace_span, traced

_RELATIONS = {-1: "<", 0: "=", 1: ">"}


class MaskService(BaseService):
    """Compile, inspect and apply picture masks."""

    @traced
    def inspect(self, mask: str) -> ServiceResult:
        try:
            compiled = compile_mask(mask)
        except FieldctlError as exc:
            return self._failure("inspect_mask", exc, mask=mask)
        return ServiceResult(ok=True, op="inspect_mask", data=compiled.describe())

    @traced
    def format(self, mask: str, value: str, *, fixed_width: bool = False) -> ServiceResult:
        try:
            formatted = compile_mask(mask).format(value, fixed_width=fixed_width)
        except FieldctlError as exc:
            return self._failure("format_value", exc, mask=mask, value=value)
        return ServiceResult(
            ok=True,
            op="format_value",
            data={"mask": mask, "value": value, "formatted": formatted},
        )

    @traced
    def parse(self, mask: str, value: str) -> ServiceResult:
        try:
            canonical = compile_mask(mask).parse(value)
        except FieldctlError as exc:
            return self._failure("parse_value", exc, mask=mask, value=value)
        return ServiceResult(
            ok=True,
            op="parse_value",
            data={"mask": mask, "value": value, "canonical": canonical},
        )


class AmountService(BaseService):
    """Exact monetary arithmetic under the configured digit budget."""

    def _parse(self, text: str, mask: PictureMask | None = None) -> MonetaryAmount:
        return MonetaryAmount.parse(text, mask, max_digits=self._settings.money.max_digits)

    def _render(self, amount: MonetaryAmount) -> str:
        money = self._settings.money
        return amount.format(explicit_sign=money.explicit_sign, grouping=money.grouping)

    @traced
    def add(self, left: str, right: str) -> ServiceResult:
        try:
            total = self._parse(left).add(self._parse(right))
        except FieldctlError as exc:
            return self._failure("add_amounts", exc, left=left, right=right)
        return ServiceResult(
            ok=True,
            op="add_amounts",
            data={"result": total.canonical(), "formatted": self._render(total)},
        )

    @traced
    def subtract(self, left: str, right: str) -> ServiceResult:
        try:
            difference = self._parse(left).subtract(self._parse(right))
        except FieldctlError as exc:
            return self._failure("subtract_amounts", exc, left=left, right=right)
        return ServiceResult(
            ok=True,
            op="subtract_amounts",
            data={"result": difference.canonical(), "formatted": self._render(difference)},
        )

    @traced
    def compare(self, left: str, right: str) -> ServiceResult:
        try:
            order = self._parse(left).compare(self._parse(right))
        except FieldctlError as exc:
            return self._failure("compare_amounts", exc, left=left, right=right)
        return ServiceResult(
            ok=True,
            op="compare_amounts",
            data={
                "left": left,
                "right": right,
                "comparison": order,
                "relation": _RELATIONS[order],
            },
        )

    @traced
    def format(
        self,
        value: str,
        *,
        mask: str | None = None,
        explicit_sign: bool | None = None,
        grouping: bool | None = None,
    ) -> ServiceResult:
        money = self._settings.money
        try:
            compiled = compile_mask(mask) if mask else None
            if compiled is not None and compiled.kind is not MaskKind.NUMERIC_SIGNED:
                return ServiceResult(
                    ok=False,
                    op="format_amount",
                    error=ServiceError(
                        code="INVALID_MASK",
                        message=f"mask {compiled.spec!r} is not a numeric edited mask",
                        detail={"mask": mask},
                    ),
                )
            amount = self._parse(value, compiled)
            formatted = amount.format(
                compiled,
                explicit_sign=money.explicit_sign if explicit_sign is None else explicit_sign,
                grouping=money.grouping if grouping is None else grouping,
            )
        except FieldctlError as exc:
            return self._failure("format_amount", exc, value=value)
        return ServiceResult(
            ok=True,
            op="format_amount",
            data={"value": value, "canonical": amount.canonical(), "formatted": formatted},
        )


class FormService(BaseService):
    """Load form definitions and validate submissions against them."""

    @traced
    def check(self, path: Path) -> ServiceResult:
        """Load a definition and summarise its fields and rule graph."""
        warnings: list[str] = []
        try:
            with trace_span("load_definition"):
                definition = load_form_definition(path, predicates=self._predicates(warnings))
        except FieldctlError as exc:
            return self._failure("check_definition", exc, path=str(path))

        fields = [
            {
                "name": f.name,
                "label": f.display_label,
                "protection": str(f.protection),
                "mask": f.input_mask.spec if f.input_mask else None,
                "max_length": f.max_length,
                "required": f.required,
                "rules": [str(r.kind) for r in definition.rules_for(f.name)],
            }
            for f in definition.fields
        ]
        rules = [
            {
                "id": r.rule_id,
                "fields": list(r.fields),
                "dependents": list(r.dependents),
                "async": r.is_async,
            }
            for r in definition.cross_rules
        ]
        edges = [[a, b] for a, b in definition.graph.graph.edges]
        return ServiceResult(
            ok=True,
            op="check_definition",
            data={"form": definition.name, "fields": fields, "cross_rules": rules, "edges": edges},
            warnings=warnings,
        )

    @traced
    def validate(self, path: Path, values: Mapping[str, str]) -> ServiceResult:
        """Validate *values* as one submission of the form at *path*.

        Success carries the canonical payload; a rejected submission is a
        ``VALIDATION_FAILED`` error whose detail holds the full result.
        """
        warnings: list[str] = []
        try:
            with trace_span("load_definition"):
                definition = load_form_definition(path, predicates=self._predicates(warnings))
            session = FormSession(
                definition,
                values=values,
                validation=self._settings.validation,
                plugins=self._plugins if self._settings.plugins.enabled else None,
            )
        except FieldctlError as exc:
            return self._failure("validate_form", exc, path=str(path))

        with form_context(definition.name, session=session.session_id):
            return self._submit(path, definition, session, warnings)

    def _submit(
        self,
        path: Path,
        definition: FormDefinition,
        session: FormSession,
        warnings: list[str],
    ) -> ServiceResult:
        with trace_span("submit") as span:
            result = session.submit()
            if span is not None:
                span.annotate(fields=len(definition.fields), rules=len(definition.cross_rules))

        dumped = result.model_dump(mode="json")
        if not result.is_valid or result.pending_rules:
            return ServiceResult(
                ok=False,
                op="validate_form",
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=f"{definition.name}: submission rejected",
                    detail=dumped,
                ),
                warnings=warnings,
            )

        try:
            with trace_span("build_payload"):
                payload = build_payload(definition, session.values)
        except FieldctlError as exc:
            return self._failure("validate_form", exc, path=str(path))
        return ServiceResult(
            ok=True,
            op="validate_form",
            data={"form": definition.name, "accepted": True, "result": dumped, "payload": payload},
            warnings=warnings,
        )
