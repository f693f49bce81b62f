"""
Tests for tax return assembly and the filing lifecycle.

Covers:
- PIT and CIT returns built from recorded income
- Documentation completeness and refresh
- Update, regenerate and delete of drafts
- Filing: readiness, reference numbers, immutability afterwards
- Reviewer and regulator transitions
- Capital credits drawn at filing time
- SQLite persistence of returns
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from tax_engines.computation import TaxType
from tax_kernel.db.repository import SqlAlchemyRepository
from tax_kernel.domain.repositories import InMemoryDocumentSource
from tax_kernel.exceptions import (
    BusinessNotFoundError,
    CollaboratorNotConfiguredError,
    InputValidationError,
    InvalidTransitionError,
    ReturnAlreadyFiledError,
    ReturnImmutableError,
    ReturnNotReadyError,
    TaxReturnNotFoundError,
    UnsupportedTaxTypeError,
)
from tax_kernel.logging_config import LogContext
from tax_modules.computation import IncomeSource, PersonalReliefClaims
from tax_modules.computation.orm import BusinessProfileModel, IncomeRecordModel
from tax_modules.tax_return import TaxReturnAssembler, TaxReturnStatus
from tax_modules.tax_return.orm import TaxReturnModel
from tax_modules.tax_return.service import compute_tax_due, generate_reference_number

RENT_CLAIM = PersonalReliefClaims(
    rent_paid=Decimal("1200000"),
    landlord_name="Mrs Okonkwo",
    landlord_address="7 Bourdillon Road, Ikoyi",
    landlord_tin="22334455-0001",
    rent_receipt_numbers=("RR-2026-001",),
)

PENSION_CLAIM = replace(
    RENT_CLAIM,
    pension_contribution=Decimal("300000"),
    pension_provider_name="Stanbic IBTC Pensions",
    pension_policy_number="PEN-100234",
)


class TestHelpers:

    def test_tax_due_never_negative(self):
        assert compute_tax_due(Decimal("100"), Decimal("80"), Decimal("50")) == Decimal("0")
        assert compute_tax_due(Decimal("100"), Decimal("30"), Decimal("20")) == Decimal("50")

    def test_reference_number_format(self):
        reference = generate_reference_number(TaxType.CIT, 2026)

        assert reference.startswith("FIRS-CIT-2026-")
        suffix = reference.rsplit("-", 1)[1]
        assert len(suffix) == 10
        assert suffix == suffix.upper()

    def test_reference_numbers_unique(self):
        refs = {generate_reference_number(TaxType.PIT, 2026) for _ in range(50)}
        assert len(refs) == 50


class TestPersonalReturn:

    @pytest.fixture(autouse=True)
    def _setup(self, assembler, assembler_parts, user_id, make_income, make_document):
        self.assembler = assembler
        self.parts = assembler_parts
        self.user_id = user_id
        self.make_document = make_document
        income = assembler_parts["income_records"]
        income.save(make_income(user_id, "4000000"))
        income.save(make_income(user_id, "1000000", source=IncomeSource.FREELANCE))
        # business-attributed income stays out of the personal return
        income.save(make_income(user_id, "9000000", source=IncomeSource.BUSINESS, business_id=uuid4()))
        # other years and other users are ignored
        income.save(make_income(user_id, "7000000", tax_year=2025))
        income.save(make_income(uuid4(), "7000000"))

    def _add_documents(self, *types):
        for document_type in types:
            self.parts["documents"].add(self.make_document(self.user_id, document_type))

    def test_generate_pit(self):
        self._add_documents("payslip", "rent_receipt")

        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        assert tax_return.status == TaxReturnStatus.DRAFT
        assert tax_return.total_income == Decimal("5000000.00")
        assert tax_return.reliefs["rent_relief"] == Decimal("240000.00")
        assert tax_return.taxable_income == Decimal("4760000.00")
        assert tax_return.tax_liability == Decimal("646800.00")
        assert tax_return.tax_due == Decimal("646800.00")
        assert tax_return.documentation_complete is True
        assert tax_return.calculation_breakdown["tax_liability"] == "646800.00"
        assert self.assembler.get(tax_return.id) == tax_return

    def test_tax_type_accepted_as_string(self):
        tax_return = self.assembler.generate(self.user_id, 2026, "PIT")
        assert tax_return.tax_type == TaxType.PIT

    def test_missing_documents_listed(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        assert tax_return.documentation_complete is False
        assert tax_return.missing_documents == ("Income statements or payslips", "Rent receipts")

    def test_income_below_threshold_needs_no_statements(self, make_income):
        user_id = uuid4()
        self.parts["income_records"].save(make_income(user_id, "600000"))

        tax_return = self.assembler.generate(user_id, 2026, TaxType.PIT)

        assert tax_return.tax_liability == Decimal("0.00")
        assert tax_return.documentation_complete is True

    def test_documents_from_other_years_ignored(self):
        self.parts["documents"].add(self.make_document(self.user_id, "payslip", tax_year=2024))

        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        assert "Income statements or payslips" in tax_return.missing_documents

    def test_invalid_claims_rejected(self):
        with pytest.raises(InputValidationError):
            self.assembler.generate(
                self.user_id, 2026, TaxType.PIT,
                pit_details=PersonalReliefClaims(rent_paid=Decimal("1200000")),
            )

    def test_unsupported_return_type(self):
        with pytest.raises(UnsupportedTaxTypeError):
            self.assembler.generate(self.user_id, 2026, TaxType.VAT)

    def test_regenerate_keeps_draft_identity(self):
        first = self.assembler.generate(self.user_id, 2026, TaxType.PIT)
        self.assembler.update(first.id, tax_paid=Decimal("100000"), notes="Paid via Remita")

        second = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        assert second.id == first.id
        assert second.tax_paid == Decimal("100000")
        assert second.notes == "Paid via Remita"
        assert second.tax_due == Decimal("546800.00")
        assert len(self.assembler.list_returns(self.user_id)) == 1

    def test_update_tax_paid(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        updated = self.assembler.update(tax_return.id, tax_paid=Decimal("700000"))

        assert updated.tax_due == Decimal("0")

    def test_update_negative_tax_paid(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        with pytest.raises(InputValidationError):
            self.assembler.update(tax_return.id, tax_paid=Decimal("-1"))

    def test_update_supporting_documents(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        updated = self.assembler.update(
            tax_return.id,
            supporting_documents={"income_statements": ["https://files.example/p.pdf"]},
        )

        assert updated.documentation_complete is True

    def test_refresh_documentation(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)
        self._add_documents("payslip", "lease_agreement")

        refreshed = self.assembler.refresh_documentation(tax_return.id)

        assert refreshed.documentation_complete is True
        assert len(refreshed.supporting_documents["rent_receipts"]) == 1

    def test_revalidation_is_idempotent(self):
        self._add_documents("payslip")
        draft = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=PENSION_CLAIM)

        first = self.assembler.refresh_documentation(draft.id)
        second = self.assembler.refresh_documentation(draft.id)

        assert first.missing_documents == ("Rent receipts", "Pension contribution certificates")
        assert second.missing_documents == first.missing_documents == draft.missing_documents
        assert second.validation_errors == first.validation_errors == ()
        assert second == first
        assert self.assembler.get(draft.id) == second

    def test_delete_draft(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        self.assembler.delete(tax_return.id)

        with pytest.raises(TaxReturnNotFoundError):
            self.assembler.get(tax_return.id)

    def test_list_returns(self):
        self.assembler.generate(self.user_id, 2026, TaxType.PIT)
        self.assembler.generate(self.user_id, 2025, TaxType.PIT)

        assert [r.tax_year for r in self.assembler.list_returns(self.user_id)] == [2026, 2025]
        assert len(self.assembler.list_returns(self.user_id, tax_year=2025)) == 1

    def test_generation_logged_with_context(self, captured_logs):
        self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        generated = [r for r in captured_logs() if r["message"] == "tax_return_generated"]
        assert generated[0]["user_id"] == str(self.user_id)
        assert "user_id" not in LogContext.get_all()


class TestFiling:

    @pytest.fixture(autouse=True)
    def _setup(self, assembler, assembler_parts, user_id, make_income, make_document, deterministic_clock):
        self.assembler = assembler
        self.parts = assembler_parts
        self.user_id = user_id
        self.clock = deterministic_clock
        assembler_parts["income_records"].save(make_income(user_id, "5000000"))
        assembler_parts["documents"].add(make_document(user_id, "payslip"))
        self.draft = assembler.generate(user_id, 2026, TaxType.PIT)

    def test_submit(self, captured_logs):
        filed = self.assembler.submit(self.draft.id)

        assert filed.status == TaxReturnStatus.FILED
        assert filed.submitted is True
        assert filed.submission_date == self.clock.now()
        assert filed.reference_number.startswith("FIRS-PIT-2026-")
        logged = [r for r in captured_logs() if r["message"] == "tax_return_filed"]
        assert logged[0]["return_id"] == str(self.draft.id)

    def test_submit_not_ready(self):
        assembler = TaxReturnAssembler(**dict(self.parts, documents=InMemoryDocumentSource()))
        draft = assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        with pytest.raises(ReturnNotReadyError) as exc_info:
            assembler.submit(draft.id)

        assert "Rent receipts" in exc_info.value.missing_documents
        assert assembler.get(draft.id).status == TaxReturnStatus.DRAFT

    def test_filed_return_is_immutable(self):
        filed = self.assembler.submit(self.draft.id)

        with pytest.raises(ReturnImmutableError):
            self.assembler.update(filed.id, tax_paid=Decimal("1"))
        with pytest.raises(ReturnImmutableError):
            self.assembler.delete(filed.id)
        with pytest.raises(ReturnImmutableError):
            self.assembler.refresh_documentation(filed.id)
        assert self.assembler.get(filed.id) == filed

    def test_cannot_file_twice(self):
        filed = self.assembler.submit(self.draft.id)

        with pytest.raises(ReturnAlreadyFiledError) as exc_info:
            self.assembler.submit(filed.id)

        assert exc_info.value.reference_number == filed.reference_number

    def test_cannot_regenerate_filed_period(self):
        self.assembler.submit(self.draft.id)

        with pytest.raises(ReturnAlreadyFiledError):
            self.assembler.generate(self.user_id, 2026, TaxType.PIT)

    def test_review_path(self):
        pending = self.assembler.transition(self.draft.id, "submit_for_review")
        assert pending.status == TaxReturnStatus.PENDING_REVIEW

        with pytest.raises(InvalidTransitionError):
            self.assembler.submit(self.draft.id)

        ready = self.assembler.transition(self.draft.id, "approve")
        assert ready.status == TaxReturnStatus.READY_TO_FILE

        filed = self.assembler.transition(self.draft.id, "file")
        assert filed.status == TaxReturnStatus.FILED
        assert filed.reference_number is not None

    def test_request_changes_returns_to_draft(self):
        self.assembler.transition(self.draft.id, "submit_for_review")

        draft = self.assembler.transition(self.draft.id, "request_changes")

        assert draft.status == TaxReturnStatus.DRAFT

    def test_accept(self):
        self.assembler.submit(self.draft.id)

        accepted = self.assembler.transition(self.draft.id, "accept")

        assert accepted.status == TaxReturnStatus.ACCEPTED
        with pytest.raises(InvalidTransitionError):
            self.assembler.transition(self.draft.id, "reject")

    def test_reject_records_reason(self):
        self.assembler.submit(self.draft.id)

        rejected = self.assembler.transition(self.draft.id, "reject", reason="Missing TIN")

        assert rejected.status == TaxReturnStatus.REJECTED
        assert rejected.rejection_reason == "Missing TIN"

    def test_regulator_action_on_draft_refused(self):
        with pytest.raises(InvalidTransitionError):
            self.assembler.transition(self.draft.id, "accept")

    def test_unknown_action(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            self.assembler.transition(self.draft.id, "cancel")

        assert exc_info.value.action == "cancel"

    def test_credits_only_for_company_returns(self):
        with pytest.raises(UnsupportedTaxTypeError):
            self.assembler.submit(self.draft.id, apply_capital_credits=True)


class TestCompanyReturn:

    @pytest.fixture(autouse=True)
    def _setup(
        self, assembler, assembler_parts, user_id, make_income, make_document, make_business, ledger,
    ):
        self.assembler = assembler
        self.parts = assembler_parts
        self.user_id = user_id
        self.ledger = ledger
        self.business = make_business(user_id)
        assembler_parts["businesses"].save(self.business)
        income = assembler_parts["income_records"]
        income.save(make_income(user_id, "300000000", source=IncomeSource.BUSINESS, business_id=self.business.id))
        income.save(make_income(user_id, "200000000", source=IncomeSource.BUSINESS, business_id=self.business.id))
        income.save(make_income(user_id, "5000000"))
        assembler_parts["documents"].add(make_document(user_id, "income_statement"))

    def test_generate_cit(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)

        assert tax_return.business_id == self.business.id
        assert tax_return.total_income == Decimal("500000000.00")
        assert tax_return.tax_liability == Decimal("15000000.00")
        assert tax_return.calculation_breakdown["breakdown"]["classification"] == "standard"
        assert tax_return.documentation_complete is True

    def test_financial_statements_required(self):
        assembler = TaxReturnAssembler(**dict(self.parts, documents=InMemoryDocumentSource()))

        tax_return = assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)

        assert "Financial statements" in tax_return.missing_documents

    def test_business_required(self):
        with pytest.raises(InputValidationError) as exc_info:
            self.assembler.generate(self.user_id, 2026, TaxType.CIT)

        assert exc_info.value.issues[0].field == "business_id"

    def test_unknown_business(self):
        with pytest.raises(BusinessNotFoundError):
            self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=uuid4())

    def test_business_of_another_owner(self):
        with pytest.raises(BusinessNotFoundError):
            self.assembler.generate(uuid4(), 2026, TaxType.CIT, business_id=self.business.id)

    def test_pit_and_cit_kept_apart(self):
        cit = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)
        pit = self.assembler.generate(self.user_id, 2026, TaxType.PIT)

        assert cit.id != pit.id
        assert pit.total_income == Decimal("5000000.00")

    def test_submit_with_capital_credits(self):
        credit = self.ledger.record_expenditure(self.business.id, Decimal("10000000"), 2026)
        draft = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)

        filed = self.assembler.submit(draft.id, apply_capital_credits=True)

        assert filed.credits_applied == Decimal("500000.00")
        assert filed.tax_due == Decimal("14500000.00")
        assert self.ledger.get_credit(credit.id).fully_utilized is True

    def test_credits_limited_to_outstanding_tax(self):
        credit = self.ledger.record_expenditure(self.business.id, Decimal("10000000"), 2026)
        draft = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)
        self.assembler.update(draft.id, tax_paid=Decimal("14800000"))

        filed = self.assembler.submit(draft.id, apply_capital_credits=True)

        assert filed.credits_applied == Decimal("200000.00")
        assert filed.tax_due == Decimal("0")
        assert self.ledger.get_credit(credit.id).remaining_amount == Decimal("300000.00")

    def test_credits_without_ledger(self):
        assembler = TaxReturnAssembler(**dict(self.parts, ledger=None))
        draft = assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)

        with pytest.raises(CollaboratorNotConfiguredError) as exc_info:
            assembler.submit(draft.id, apply_capital_credits=True)

        assert exc_info.value.collaborator == "capital credit ledger"
        assert assembler.get(draft.id).status == TaxReturnStatus.DRAFT

    def test_agricultural_holiday_return(self, make_business, make_income, agricultural_start):
        farm = make_business(
            self.user_id,
            name="Benue Agro Ltd",
            is_agricultural_business=True,
            agricultural_start_date=agricultural_start,
        )
        self.parts["businesses"].save(farm)
        self.parts["income_records"].save(
            make_income(self.user_id, "400000000", source=IncomeSource.BUSINESS, business_id=farm.id)
        )

        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=farm.id)

        assert tax_return.tax_liability == Decimal("0.00")
        assert tax_return.calculation_breakdown["breakdown"]["classification"] == "agricultural_holiday"


@pytest.mark.sqlite
class TestAssemblerSqlite:
    """Returns, income and businesses persisted in SQLite."""

    @pytest.fixture(autouse=True)
    def _setup(
        self, session, config_provider, deterministic_clock, test_actor_id,
        user_id, make_income, make_document, make_business,
    ):
        self.session = session
        income = SqlAlchemyRepository(session, IncomeRecordModel, actor_id=test_actor_id)
        businesses = SqlAlchemyRepository(session, BusinessProfileModel, actor_id=test_actor_id)
        self.user_id = user_id
        self.business = make_business(user_id)
        businesses.save(self.business)
        income.save(make_income(user_id, "5000000"))
        income.save(make_income(user_id, "500000000", source=IncomeSource.BUSINESS, business_id=self.business.id))
        self.assembler = TaxReturnAssembler(
            returns=SqlAlchemyRepository(session, TaxReturnModel, actor_id=test_actor_id),
            income_records=income,
            businesses=businesses,
            documents=InMemoryDocumentSource([
                make_document(user_id, "payslip"),
                make_document(user_id, "rent_receipt"),
            ]),
            config_provider=config_provider,
            clock=deterministic_clock,
        )

    def test_generate_and_file_pit(self):
        draft = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        stored = self.assembler.get(draft.id)
        assert stored.tax_liability == Decimal("646800")
        assert stored.reliefs["rent_relief"] == Decimal("240000.00")
        assert stored.supporting_documents["rent_receipts"] == draft.supporting_documents["rent_receipts"]

        filed = self.assembler.submit(draft.id)

        row = self.session.get(TaxReturnModel, draft.id)
        assert row.status == "filed"
        assert row.reference_number == filed.reference_number

    def test_cit_uses_business_income_only(self):
        tax_return = self.assembler.generate(self.user_id, 2026, TaxType.CIT, business_id=self.business.id)

        assert tax_return.total_income == Decimal("500000000.00")
        assert self.assembler.get(tax_return.id).business_id == self.business.id

    def test_regenerate_updates_row_in_place(self):
        first = self.assembler.generate(self.user_id, 2026, TaxType.PIT)
        second = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=RENT_CLAIM)

        assert second.id == first.id
        assert self.session.query(TaxReturnModel).count() == 1

    def test_revalidation_is_idempotent_after_round_trip(self):
        draft = self.assembler.generate(self.user_id, 2026, TaxType.PIT, pit_details=PENSION_CLAIM)

        first = self.assembler.refresh_documentation(draft.id)
        second = self.assembler.refresh_documentation(draft.id)

        assert first.missing_documents == ("Pension contribution certificates",)
        assert second.missing_documents == first.missing_documents == draft.missing_documents
        assert second.validation_errors == first.validation_errors == ()
        assert second.tax_due == first.tax_due == draft.tax_due
        assert second.supporting_documents == first.supporting_documents
        assert second == first

        row = self.session.get(TaxReturnModel, draft.id)
        assert row.missing_documents == ["Pension contribution certificates"]
        assert row.documentation_complete is False
