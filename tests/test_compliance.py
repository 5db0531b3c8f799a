"""Tests for compliance snapshots."""

from uuid import uuid4

from personnel_compliance.calculators import ComplianceCalculator, build_snapshot, is_satisfied
from personnel_compliance.models import EmployeeDocumentRequirement
from personnel_compliance.services import DocumentTypeCatalog, RequirementAssigner

from conftest import EMPLOYEE_ID, utc


def _requirement(status: str, expires_at=None, document_type_id=None):
    return EmployeeDocumentRequirement(
        employee_id=EMPLOYEE_ID,
        document_type_id=document_type_id or uuid4(),
        status=status,
        expires_at=expires_at,
    )


class TestBuildSnapshot:
    """Pure snapshot computation."""

    def test_no_required_types_is_compliant(self):
        snapshot = build_snapshot(EMPLOYEE_ID, [], [], utc(2024, 1, 1))

        assert snapshot.is_compliant is True
        assert snapshot.total == 0
        assert snapshot.counts == {
            "pending": 0,
            "submitted": 0,
            "approved": 0,
            "rejected": 0,
            "expired": 0,
        }

    def test_missing_required_type(self):
        required = uuid4()
        snapshot = build_snapshot(EMPLOYEE_ID, [required], [], utc(2024, 1, 1))

        assert snapshot.is_compliant is False
        assert snapshot.missing_document_type_ids == [required]
        assert snapshot.outstanding_document_type_ids == [required]

    def test_counts_every_status(self):
        requirements = [
            _requirement("pending"),
            _requirement("submitted"),
            _requirement("approved"),
            _requirement("approved"),
            _requirement("expired"),
        ]
        snapshot = build_snapshot(EMPLOYEE_ID, [], requirements, utc(2024, 1, 1))

        assert snapshot.counts["approved"] == 2
        assert snapshot.counts["rejected"] == 0
        assert snapshot.total == sum(snapshot.counts.values()) == 5

    def test_lapsed_approval_not_satisfying_before_sweep(self):
        type_id = uuid4()
        lapsed = _requirement("approved", utc(2024, 6, 1), type_id)

        assert is_satisfied(lapsed, utc(2024, 5, 31)) is True
        assert is_satisfied(lapsed, utc(2024, 6, 1)) is False

        snapshot = build_snapshot(EMPLOYEE_ID, [type_id], [lapsed], utc(2024, 7, 1))
        assert snapshot.is_compliant is False
        assert snapshot.missing_document_type_ids == []
        assert snapshot.outstanding_document_type_ids == [type_id]

    def test_optional_requirements_do_not_matter(self):
        required = uuid4()
        requirements = [
            _requirement("approved", None, required),
            _requirement("rejected"),
        ]
        snapshot = build_snapshot(EMPLOYEE_ID, [required], requirements, utc(2024, 1, 1))

        assert snapshot.is_compliant is True

    def test_to_dict_is_json_ready(self):
        required = uuid4()
        data = build_snapshot(EMPLOYEE_ID, [required], [], utc(2024, 1, 1)).to_dict()

        assert data["as_of"] == "2024-01-01T00:00:00+00:00"
        assert data["missing_document_type_ids"] == [str(required)]


class TestComplianceCalculator:
    """Snapshots over stored requirements."""

    async def test_unknown_employee(self, session, make_document_type):
        await make_document_type("National ID Card")

        snapshot = await ComplianceCalculator(session).snapshot("nobody", utc(2024, 1, 1))

        assert snapshot.total == 0
        assert snapshot.is_compliant is False
        assert snapshot.required_total == 1

    async def test_compliant_after_approvals(self, session, make_document_type, make_approved):
        id_card = await make_document_type("National ID Card")
        birth = await make_document_type("Birth Certificate")
        await make_approved(id_card.id, utc(2024, 1, 1))

        calculator = ComplianceCalculator(session)
        partial = await calculator.snapshot(EMPLOYEE_ID, utc(2024, 2, 1))
        assert partial.is_compliant is False
        assert partial.missing_document_type_ids == [birth.id]

        await make_approved(birth.id, utc(2024, 1, 2))
        complete = await calculator.snapshot(EMPLOYEE_ID, utc(2024, 2, 1))
        assert complete.is_compliant is True
        assert complete.counts["approved"] == 2

    async def test_pending_required_is_outstanding(self, session, make_document_type):
        id_card = await make_document_type("National ID Card")
        await RequirementAssigner(session).assign_required_for(EMPLOYEE_ID)

        snapshot = await ComplianceCalculator(session).snapshot(EMPLOYEE_ID, utc(2024, 1, 1))

        assert snapshot.counts["pending"] == 1
        assert snapshot.missing_document_type_ids == []
        assert snapshot.outstanding_document_type_ids == [id_card.id]

    async def test_deactivated_type_no_longer_required(self, session, make_document_type):
        retired = await make_document_type("Old Form")
        await DocumentTypeCatalog(session).deactivate(retired.id)

        snapshot = await ComplianceCalculator(session).snapshot(EMPLOYEE_ID, utc(2024, 1, 1))

        assert snapshot.required_total == 0
        assert snapshot.is_compliant is True

    async def test_uses_clock(self, session, clock):
        snapshot = await ComplianceCalculator(session, clock).snapshot(EMPLOYEE_ID)
        assert snapshot.as_of == clock.now
