"""
Recurrence Engine

Maintains the template → instance relationship for recurring obligations
and the settlement (paid/received) lifecycle of concrete obligations.

State per (template, month):

    PENDING   - template active, no instance for the month, not snoozed
    SNOOZED   - snoozed_until is after today; hidden from suggestions
    CONFIRMED - exactly one instance carries provenance (template, month)
    SETTLED   - the instance also has a Settlement record

DESIGN DECISION: The engine works on an in-memory working set that the
caller loads from storage. Every mutating operation applies its change to
the working set AND returns it as a ChangeSet for the caller to persist.
Because the working set sees its own writes, and both reads and mutations
are serialized by a lock, a double click can never create a second instance
or a second settlement, and a reader never sees a half-applied batch.
"""

import threading
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import structlog

from obligation_engine.audit import AuditLogger
from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.errors import (
    AlreadyConfirmedError,
    InvalidInputError,
    NotFoundError,
)
from obligation_engine.models.obligation import (
    BatchConfirmation,
    ChangeSet,
    InstanceProvenance,
    Obligation,
    PaymentInstrument,
    Settlement,
    SettlementKind,
    SettlementState,
    Suggestion,
)
from obligation_engine.temporal import (
    DateLike,
    clamp_day,
    effective_month_key,
    month_end,
    month_key,
    parse_month_key,
)
from obligation_engine.validation import ObligationValidator, require_positive


logger = structlog.get_logger(__name__)

# Fields an instance never inherits from its template
_TEMPLATE_ONLY_FIELDS = {
    "id",
    "amount",
    "currency",
    "start_date",
    "is_recurring",
    "recurring_day",
    "provenance",
    "snoozed_until",
    "reminder_days",
    "settlement",
}


class RecurrenceEngine:
    """
    Generates, confirms and settles obligations for a user's records.

    Usage:
        engine = RecurrenceEngine(obligations, settlements, instruments)
        for suggestion in engine.pending_for_month("2024-03", today=today):
            ...
        changes = engine.confirm(template.id, today=today)
        store.apply(changes)
    """

    def __init__(
        self,
        obligations: Iterable[Obligation] = (),
        settlements: Iterable[Settlement] = (),
        instruments: Iterable[PaymentInstrument] = (),
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ObligationValidator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._obligations: dict[UUID, Obligation] = {o.id: o for o in obligations}
        self._settlements: dict[UUID, Settlement] = {s.obligation_id: s for s in settlements}
        self._instruments: dict[UUID, PaymentInstrument] = {i.id: i for i in instruments}
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or ObligationValidator()
        self._settings = settings or get_settings()
        self._lock = threading.RLock()

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get(self, obligation_id: UUID) -> Obligation:
        try:
            return self._obligations[obligation_id]
        except KeyError:
            raise NotFoundError("obligation", obligation_id) from None

    def obligations(self) -> list[Obligation]:
        with self._lock:
            return list(self._obligations.values())

    def templates(self, include_inactive: bool = False) -> list[Obligation]:
        with self._lock:
            return [
                o for o in self._obligations.values()
                if o.is_template and (include_inactive or o.is_active)
            ]

    def instances_for(self, template_id: UUID) -> list[Obligation]:
        """Instances of a template, newest first."""
        with self._lock:
            instances = [
                o for o in self._obligations.values()
                if o.provenance is not None and o.provenance.template_id == template_id
            ]
        return sorted(instances, key=lambda o: o.start_date, reverse=True)

    def instance_for_month(self, template_id: UUID, month: DateLike) -> Optional[Obligation]:
        key = month_key(month)
        return next(
            (o for o in self.instances_for(template_id) if o.provenance.month == key),
            None,
        )

    def settlement_for(self, obligation_id: UUID) -> Optional[Settlement]:
        with self._lock:
            return self._settlements.get(obligation_id)

    def is_settled(self, obligation_id: UUID) -> bool:
        with self._lock:
            obligation = self.get(obligation_id)
            return obligation.is_settled or obligation_id in self._settlements

    def _require_template(self, template_id: UUID) -> Obligation:
        template = self._obligations.get(template_id)
        if template is None:
            raise NotFoundError("template", template_id)
        if not template.is_template:
            raise InvalidInputError("template_id", f"{template.name!r} is not a recurring template")
        return template

    def _effective_month(self, obligation: Obligation, on: Optional[date] = None) -> str:
        instrument = self._instruments.get(obligation.payment_instrument_id) if obligation.payment_instrument_id else None
        return effective_month_key(
            on or obligation.start_date,
            instrument.kind if instrument else None,
            instrument.statement_closing_day if instrument else None,
        )

    # =========================================================================
    # SUGGESTIONS
    # =========================================================================

    def suggested_amount(self, template: Obligation) -> Decimal:
        """
        Mean of the most recent instances, else the template amount.

        Follows drifting amounts (utility bills) without a forecast model.
        The window size is the `suggestion_window` setting.
        """
        recent = self.instances_for(template.id)[:self._settings.suggestion_window]
        if recent:
            return sum((o.amount for o in recent), Decimal("0")) / len(recent)
        return template.amount

    def suggested_date(self, template: Obligation, month: DateLike) -> date:
        """Template's recurring day inside the month; day 1 when unset or out of range."""
        first = parse_month_key(month_key(month))
        day = template.recurring_day
        if day is None or not 1 <= day <= 31:
            day = 1
        return clamp_day(first.year, first.month, day)

    def is_snoozed(self, template: Obligation, today: date) -> bool:
        return template.snoozed_until is not None and template.snoozed_until > today

    def pending_for_month(self, month: DateLike, today: date) -> list[Suggestion]:
        """
        Templates that still need an instance for `month`.

        Skips inactive templates, templates starting after the month,
        templates already confirmed for the month and snoozed templates.
        """
        key = month_key(month)
        last_day = month_end(key)

        suggestions = []
        with self._lock:
            for template in self.templates():
                if template.start_date > last_day:
                    continue
                if self.instance_for_month(template.id, key) is not None:
                    continue
                if self.is_snoozed(template, today):
                    continue
                suggestions.append(Suggestion(
                    template=template,
                    month=key,
                    suggested_amount=self.suggested_amount(template),
                    suggested_date=self.suggested_date(template, key),
                ))

        return sorted(suggestions, key=lambda s: (s.suggested_date, s.template.name))

    def due_soon(
        self,
        reference_date: date,
        within_days: Optional[int] = None,
    ) -> list[Suggestion]:
        """
        Pending suggestions of the reference month falling due within the
        reminder window.

        The window is `within_days` when given, else the template's
        `reminder_days`, else the `default_reminder_days` setting.
        """
        due = []
        for suggestion in self.pending_for_month(reference_date, today=reference_date):
            window = within_days
            if window is None:
                window = suggestion.template.reminder_days
            if window is None:
                window = self._settings.default_reminder_days

            days_left = (suggestion.suggested_date - reference_date).days
            if 0 <= days_left <= window:
                due.append(suggestion)
        return due

    def find_duplicates(
        self,
        template_id: UUID,
        on: date,
        correlation_id: Optional[UUID] = None,
    ) -> list[Obligation]:
        """
        Concrete obligations that may already cover `template_id` in the
        effective month of `on`.

        A match either carries the template's provenance or has the same
        name, compared case-insensitively after trimming. Advisory only:
        nothing is merged.
        """
        with self._lock:
            template = self._require_template(template_id)
            target = self._effective_month(template, on)

            matches = [
                o for o in self._obligations.values()
                if not o.is_template
                and self._effective_month(o) == target
                and (
                    (o.provenance is not None and o.provenance.template_id == template.id)
                    or o.normalized_name == template.normalized_name
                )
            ]
        matches.sort(key=lambda o: o.start_date)

        if matches:
            self._audit_logger.log_duplicate_suspected(
                template_id=template.id,
                month=target,
                matches=[o.id for o in matches],
                correlation_id=correlation_id,
            )
        return matches

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_obligation(
        self,
        obligation: Obligation,
        correlation_id: Optional[UUID] = None,
    ) -> ChangeSet:
        """
        Validate a user-entered obligation and add it to the working set.

        Raises:
            InvalidInputError: if validation finds an error
        """
        with self._lock:
            if obligation.id in self._obligations:
                raise InvalidInputError("id", f"obligation {obligation.id} already exists")

            result = self._validator.validate(obligation)
            if result.has_errors:
                self._audit_logger.log_validation_failed(
                    obligation_id=obligation.id,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in result.issues
                    ],
                    correlation_id=correlation_id,
                )
                first = result.first_error
                raise InvalidInputError(first.field, first.message, issues=result.issues)

            self._obligations[obligation.id] = obligation
            self._audit_logger.log_obligation_added(
                obligation_id=obligation.id,
                name=obligation.name,
                is_template=obligation.is_template,
                correlation_id=correlation_id,
            )
            return ChangeSet(created_obligations=[obligation])

    def confirm(
        self,
        template_id: UUID,
        today: date,
        amount: Optional[Decimal] = None,
        on: Optional[date] = None,
        currency: Optional[str] = None,
        month: Optional[DateLike] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChangeSet:
        """
        Create the instance of a template for one month.

        The month is `month` when given, else the month of `on`, else the
        month of `today`. Amount and currency default to the template's;
        the date defaults to the suggested date.

        Raises:
            NotFoundError: unknown template id
            InvalidInputError: not a template, or invalid overrides
            AlreadyConfirmedError: the month already has an instance
        """
        with self._lock:
            template = self._require_template(template_id)

            if month is not None:
                target = month_key(month)
            else:
                target = month_key(on if on is not None else today)

            if on is not None and month_key(on) != target:
                raise InvalidInputError("date", f"{on.isoformat()} is outside {target}")
            if amount is not None:
                amount = require_positive(amount, "amount")

            if self.instance_for_month(template.id, target) is not None:
                self._audit_logger.log_confirmation_skipped(
                    template_id=template.id,
                    month=target,
                    correlation_id=correlation_id,
                )
                raise AlreadyConfirmedError(template.id, target)

            instance = Obligation(
                **template.model_dump(exclude=_TEMPLATE_ONLY_FIELDS),
                amount=amount if amount is not None else template.amount,
                currency=currency or template.currency,
                start_date=on or self.suggested_date(template, target),
                is_recurring=False,
                provenance=InstanceProvenance(template_id=template.id, month=target),
            )
            self._validator.ensure_valid(instance)

            self._obligations[instance.id] = instance
            self._audit_logger.log_instance_confirmed(
                instance_id=instance.id,
                template_id=template.id,
                month=target,
                amount=f"{instance.amount} {instance.currency}",
                correlation_id=correlation_id,
            )
            return ChangeSet(created_obligations=[instance])

    def confirm_all(
        self,
        month: DateLike,
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> BatchConfirmation:
        """
        Confirm every pending suggestion of `month` at its suggested
        amount and date.

        Safe to repeat: templates confirmed in the meantime are skipped.
        """
        key = month_key(month)
        with self._lock:
            changes = ChangeSet()
            count = 0
            for suggestion in self.pending_for_month(key, today):
                try:
                    created = self.confirm(
                        suggestion.template.id,
                        today=today,
                        amount=suggestion.suggested_amount,
                        on=suggestion.suggested_date,
                        month=key,
                        correlation_id=correlation_id,
                    )
                except AlreadyConfirmedError:
                    continue
                changes = changes.merge(created)
                count += 1

            self._audit_logger.log_batch_confirmed(
                month=key,
                count=count,
                correlation_id=correlation_id,
            )
            return BatchConfirmation(month=key, count=count, changes=changes)

    def snooze(
        self,
        template_id: UUID,
        days: Optional[int],
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> ChangeSet:
        """
        Hide a template from suggestions until today + days.

        `days=None` uses the `default_snooze_days` setting.

        Replaces any earlier snooze (last write wins).
        """
        if days is None:
            days = self._settings.default_snooze_days
        if days < 1:
            raise InvalidInputError("days", "snooze must last at least one day")

        with self._lock:
            template = self._require_template(template_id)
            until = today + timedelta(days=days)
            updated = template.model_copy(update={"snoozed_until": until})
            self._obligations[updated.id] = updated

            self._audit_logger.log_template_snoozed(
                template_id=updated.id,
                until=until,
                correlation_id=correlation_id,
            )
            return ChangeSet(updated_obligations=[updated])

    def mark_settled(
        self,
        obligation_id: UUID,
        today: date,
        settled_at: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChangeSet:
        """
        Record the payment (expense) or receipt (income) of an obligation.

        Already settled → empty ChangeSet.
        """
        with self._lock:
            obligation = self.get(obligation_id)
            if obligation.is_template:
                raise InvalidInputError("obligation_id", "templates are never settled; settle an instance")
            if self.is_settled(obligation_id):
                logger.debug("settlement_skipped", obligation_id=str(obligation_id))
                return ChangeSet()

            settled_on = settled_at or today
            kind = SettlementKind.for_direction(obligation.direction)
            settlement = Settlement(
                obligation_id=obligation.id,
                amount=obligation.amount,
                currency=obligation.currency,
                settled_at=settled_on,
                kind=kind,
            )
            updated = obligation.model_copy(
                update={"settlement": SettlementState(kind=kind, settled_at=settled_on)}
            )
            self._settlements[obligation.id] = settlement
            self._obligations[obligation.id] = updated

            self._audit_logger.log_settlement_recorded(
                obligation_id=obligation.id,
                kind=kind.value,
                settled_at=settled_on,
                amount=f"{obligation.amount} {obligation.currency}",
                correlation_id=correlation_id,
            )
            return ChangeSet(created_settlements=[settlement], updated_obligations=[updated])

    def unmark_settled(
        self,
        obligation_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ChangeSet:
        """
        Undo a settlement. Not settled → empty ChangeSet.
        """
        with self._lock:
            obligation = self.get(obligation_id)
            if not self.is_settled(obligation_id):
                return ChangeSet()

            changes = ChangeSet()
            if self._settlements.pop(obligation_id, None) is not None:
                changes.deleted_settlements.append(obligation_id)

            updated = obligation.model_copy(update={"settlement": None})
            self._obligations[obligation_id] = updated
            changes.updated_obligations.append(updated)

            self._audit_logger.log_settlement_reversed(
                obligation_id=obligation_id,
                correlation_id=correlation_id,
            )
            return changes


def pending_for_month(
    obligations: Iterable[Obligation],
    month: DateLike,
    today: date,
    settings: Optional[EngineSettings] = None,
) -> list[Suggestion]:
    """Pending suggestions for a plain list of templates and instances."""
    return RecurrenceEngine(obligations, settings=settings).pending_for_month(month, today)
