"""
Form Controllers for EcoForecast

This module ties the pieces together for the inputs form:
draft editing → live preview → validation → save → navigation.

State machine (one per controller instance):

    editing → validating → error → editing
                         → saving → saved
                                  → save error → editing

DESIGN DECISION: The controller enforces the boundaries:
- Nothing reaches storage without passing validation
- At most one save is in flight; a second save() while saving is ignored
- A failed save leaves the draft untouched so the user can retry
- Every save attempt is audited

Controllers are plain objects with no UI code. The Streamlit pages keep one
per session and render from its state.
"""

from abc import ABC, abstractmethod
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from ecoforecast.audit import AuditLogger, create_correlation_id
from ecoforecast.models.inputs import (
    InputsDoc,
    Period,
    Quarter,
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    SpendPreview,
    parse_field_value,
)
from ecoforecast.preview import calculate_preview
from ecoforecast.services.storage import (
    InputsStorageInterface,
    StorageError,
    create_storage,
)
from ecoforecast.validation import (
    to_four_quarter_figures,
    to_quarterly_figures,
    validate_four_quarter_inputs,
    validate_inputs,
)


logger = structlog.get_logger(__name__)

# Bounds enforced by InputsDoc
MAX_COMPANY_LENGTH = 200
MIN_YEAR = 1
MAX_YEAR = 9999


class FormState(str, Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SAVING = "saving"
    SAVED = "saved"


class _FormController(ABC):
    """
    Shared state and save flow for the quarterly and four-quarter forms.

    Subclasses provide _validate() and _build_document().
    """

    period: Period = Period.QUARTERLY

    def __init__(
        self,
        storage: InputsStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        on_saved: Optional[Callable[[str], None]] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._on_saved = on_saved

        self.state = FormState.EDITING
        self.error = ""
        self.success = ""
        self.loading_latest = False
        self.last_saved_id: Optional[str] = None

    @property
    def saving(self) -> bool:
        return self.state is FormState.SAVING

    def _reset_messages(self) -> None:
        self.error = ""
        self.success = ""
        if self.state is FormState.SAVED:
            self.state = FormState.EDITING

    @abstractmethod
    def _validate(self) -> Optional[str]:
        """Return the first user-facing error, or None if the form is valid."""
        pass

    @abstractmethod
    def _build_document(self, year: int) -> InputsDoc:
        """Convert the validated form into a document ready for insert."""
        pass

    async def _reject(self, error: str, correlation_id: UUID) -> None:
        self.error = error
        self.state = FormState.EDITING
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                message=error,
                correlation_id=correlation_id,
            )

    async def _submit(
        self,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        if self.saving:
            logger.warning("save_ignored_in_flight", period=self.period.value)
            return None

        correlation_id = correlation_id or create_correlation_id()
        self._reset_messages()

        self.state = FormState.VALIDATING
        error = self._validate()
        if error:
            await self._reject(error, correlation_id)
            return None

        try:
            document = self._build_document(year)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            message = first.get("msg", "Invalid value")
            await self._reject(f"{field}: {message}" if field else message, correlation_id)
            return None
        except ValueError as e:
            await self._reject(str(e), correlation_id)
            return None

        self.state = FormState.SAVING
        try:
            doc_id = await self._storage.insert(document)
        except StorageError as e:
            self.error = str(e) or "Failed to save"
            self.state = FormState.EDITING
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    period=self.period.value,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None
        except Exception:
            self.state = FormState.EDITING
            raise

        self.last_saved_id = doc_id
        self.success = f"Saved! (id: {doc_id})"
        self.state = FormState.SAVED

        if self._audit_logger:
            await self._audit_logger.log_inputs_saved(
                doc_id=doc_id,
                period=self.period.value,
                total_spend=document.total_spend,
                correlation_id=correlation_id,
            )

        if self._on_saved:
            self._on_saved(doc_id)

        return doc_id

    async def _fetch_latest(
        self,
        filters: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> Optional[InputsDoc]:
        """Latest matching document; lookup failures are logged, not surfaced."""
        self.loading_latest = True
        try:
            return await self._storage.find_latest(filters)
        except StorageError as e:
            logger.warning("load_latest_failed", period=self.period.value, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_lookup_failed(
                    lookup=f"latest {self.period.value}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None
        finally:
            self.loading_latest = False


class InputsFormController(_FormController):
    """
    Controller for the single-quarter inputs form.

    Args:
        storage: Where submissions go (injected, created once at startup)
        audit_logger: Optional audit trail
        on_saved: Called with the new id after a successful save
                  (the UI uses it to navigate to the outputs page)
    """

    period = Period.QUARTERLY

    def __init__(
        self,
        storage: InputsStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        on_saved: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(storage, audit_logger, on_saved)
        self.draft = QuarterlyInputs.empty()

    @property
    def preview(self) -> SpendPreview:
        return calculate_preview(self.draft)

    def update_field(
        self,
        category: Union[ResourceCategory, str],
        field: Union[ResourceField, str],
        raw: Union[str, float, None],
    ) -> None:
        """Apply one edit from the form."""
        self._reset_messages()
        self.draft = self.draft.with_field(
            ResourceCategory(category),
            ResourceField(field),
            parse_field_value(raw),
        )

    def clear(self) -> None:
        self.draft = QuarterlyInputs.empty()
        self.error = ""
        self.success = ""
        self.state = FormState.EDITING

    def _validate(self) -> Optional[str]:
        return validate_inputs(self.draft)

    def _build_document(self, year: int) -> InputsDoc:
        return InputsDoc(
            period=Period.QUARTERLY,
            year=year,
            inputs=to_quarterly_figures(self.draft),
        )

    async def save(
        self,
        year: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        """
        Validate and store the draft.

        Args:
            year: Reporting year, defaults to the current year

        Returns:
            The new document id, or None if validation or the save failed
            (the reason is in self.error) or a save was already in flight.
        """
        return await self._submit(year or date.today().year, correlation_id)

    async def load_latest(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[InputsDoc]:
        """Prefill the draft from the most recent quarterly submission."""
        latest = await self._fetch_latest({"period": Period.QUARTERLY}, correlation_id)
        if latest is not None and latest.inputs is not None:
            self.draft = QuarterlyInputs.from_figures(latest.inputs)
            if self._audit_logger:
                await self._audit_logger.log_draft_loaded(
                    doc_id=latest.id,
                    period=latest.period.value,
                    correlation_id=correlation_id,
                )
        return latest


class FourQuarterFormController(_FormController):
    """
    Controller for the four-quarter form: one company, one year, Q1-Q4.
    """

    period = Period.FOUR_QUARTER

    def __init__(
        self,
        storage: InputsStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        on_saved: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(storage, audit_logger, on_saved)
        self.company = ""
        self.year = date.today().year
        self.drafts: dict[Quarter, QuarterlyInputs] = {
            q: QuarterlyInputs.empty() for q in Quarter
        }

    def preview(self, quarter: Union[Quarter, str]) -> SpendPreview:
        return calculate_preview(self.drafts[Quarter(quarter)])

    @property
    def annual_total(self) -> float:
        return sum(self.preview(q).total for q in Quarter)

    def set_company(self, company: str) -> None:
        self._reset_messages()
        self.company = company.strip()

    def set_year(self, year: int) -> None:
        self._reset_messages()
        self.year = int(year)

    def update_field(
        self,
        quarter: Union[Quarter, str],
        category: Union[ResourceCategory, str],
        field: Union[ResourceField, str],
        raw: Union[str, float, None],
    ) -> None:
        self._reset_messages()
        quarter = Quarter(quarter)
        self.drafts[quarter] = self.drafts[quarter].with_field(
            ResourceCategory(category),
            ResourceField(field),
            parse_field_value(raw),
        )

    def clear(self) -> None:
        self.drafts = {q: QuarterlyInputs.empty() for q in Quarter}
        self.error = ""
        self.success = ""
        self.state = FormState.EDITING

    def _validate(self) -> Optional[str]:
        if not self.company:
            return "Company is required."
        if len(self.company) > MAX_COMPANY_LENGTH:
            return f"Company must be {MAX_COMPANY_LENGTH} characters or fewer."
        if not MIN_YEAR <= self.year <= MAX_YEAR:
            return f"Year must be between {MIN_YEAR} and {MAX_YEAR}."
        return validate_four_quarter_inputs(self.drafts)

    def _build_document(self, year: int) -> InputsDoc:
        return InputsDoc(
            period=Period.FOUR_QUARTER,
            company=self.company,
            year=year,
            quarters=to_four_quarter_figures(self.drafts),
        )

    async def save(self, correlation_id: Optional[UUID] = None) -> Optional[str]:
        """Validate all four quarters and store them as one document."""
        return await self._submit(self.year, correlation_id)

    async def load_latest(
        self,
        company: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[InputsDoc]:
        """Prefill from the latest four-quarter submission, optionally for one company."""
        filters: dict[str, Any] = {"period": Period.FOUR_QUARTER}
        company = (company or self.company).strip()
        if company:
            filters["company"] = company

        latest = await self._fetch_latest(filters, correlation_id)
        if latest is not None and latest.quarters is not None:
            self.company = latest.company or ""
            self.year = latest.year
            self.drafts = {
                q: QuarterlyInputs.from_figures(latest.quarters.quarter(q))
                for q in Quarter
            }
            if self._audit_logger:
                await self._audit_logger.log_draft_loaded(
                    doc_id=latest.id,
                    period=latest.period.value,
                    correlation_id=correlation_id,
                )
        return latest


def create_app_components(
    backend: Optional[str] = None,
) -> tuple[InputsStorageInterface, AuditLogger]:
    """
    Factory function to create the shared storage and audit logger.

    Call once per process; controllers receive these by injection.

    Args:
        backend: memory, sheets or http. Defaults to the configured backend.

    Returns:
        (inputs_storage, audit_logger)
    """
    storage, audit_storage = create_storage(backend)
    return storage, AuditLogger(audit_storage)
