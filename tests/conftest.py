from __future__ import annotations

import base64
import os
import sys
import tempfile
from io import BytesIO
from pathlib import Path
from typing import Any, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep log files out of the home directory and the project workspace.
os.environ.setdefault("PDSFLOW_LOG_DIR", tempfile.mkdtemp(prefix="pdsflow-logs-"))
os.environ.setdefault("PDSFLOW_WORK_DIR", tempfile.mkdtemp(prefix="pdsflow-work-"))

from openpyxl import Workbook
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from pdsflow.config import Settings, default_settings

TEMPLATE_HEADINGS = (
    "PERSONAL INFORMATION",
    "CIVIL SERVICE ELIGIBILITY",
    "VOLUNTARY WORK",
    "OTHER INFORMATION",
)


def build_pdf_template(path: Path, pages: int = 4) -> Path:
    """Letter-size template with a heading per page and one AcroForm field on page 1."""

    pdf = canvas.Canvas(str(path), pagesize=letter, invariant=1)
    for index in range(pages):
        pdf.setFont("Helvetica-Bold", 9)
        pdf.drawString(20, 775, TEMPLATE_HEADINGS[index % len(TEMPLATE_HEADINGS)])
        if index == 0:
            pdf.acroForm.textfield(name="surname", x=148, y=665, width=280, height=12, borderWidth=0)
        pdf.showPage()
    pdf.save()
    return path


def build_workbook_template(path: Path, sheets=("C1", "C2", "C3", "C4")) -> Path:
    """Workbook with the PDS sheets, a merged surname cell and stale content."""

    wb = Workbook()
    wb.active.title = sheets[0]
    for name in sheets[1:]:
        wb.create_sheet(name)
    if "C1" in sheets:
        wb["C1"].merge_cells("D10:H10")
    if "C2" in sheets:
        wb["C2"]["D25"] = "Stale position"
    if "C3" in sheets:
        wb["C3"]["A48"] = "Stale skill"
    if "C4" in sheets:
        wb["C4"]["H15"] = "Prior answer"
    wb.save(path)
    return path


@pytest.fixture()
def pdf_template(tmp_path: Path) -> Path:
    return build_pdf_template(tmp_path / "template.pdf")


@pytest.fixture()
def xlsx_template(tmp_path: Path) -> Path:
    return build_workbook_template(tmp_path / "template.xlsx")


@pytest.fixture()
def settings(tmp_path: Path, pdf_template: Path, xlsx_template: Path) -> Settings:
    return default_settings().with_overrides(
        template_pdf=pdf_template,
        template_xlsx=xlsx_template,
        output_dir=tmp_path / "out",
    )


@pytest.fixture()
def signature_data_url() -> str:
    from PIL import Image, ImageDraw

    image = Image.new("RGB", (300, 100), "white")
    ImageDraw.Draw(image).line((10, 80, 150, 20, 290, 70), fill="black", width=4)
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture()
def sample_record() -> Dict[str, Any]:
    return {
        "personalInfo": {
            "surname": "Dela Cruz",
            "firstName": "Juan Miguel",
            "middleName": "Santos",
            "dateOfBirth": "1990-05-14",
            "placeOfBirth": "Quezon City",
            "sexAtBirth": "Male",
            "civilStatus": "  Married ",
            "height": 1.68,
            "weight": 65,
            "bloodType": "O+",
            "philsysNo": "1234-5678-9012",
            "citizenship": "Filipino",
            "residentialAddress": {
                "houseBlockLotNo": "12",
                "street": "Mabini St.",
                "barangay": "San Roque",
                "cityMunicipality": "Marikina",
                "province": "Metro Manila",
                "zipCode": "1800",
            },
            "permanentAddress": {"sameAsResidential": True},
            "mobileNo": "09171234567",
        },
        "familyBackground": {
            "mother": {"surname": "Santos", "firstName": "Maria"},
            "children": [
                {"fullName": "Ana Dela Cruz", "dateOfBirth": "2015-02-03"},
                {"fullName": "Ben Dela Cruz", "dateOfBirth": "03/09/2018"},
            ],
        },
        "educationalBackground": [
            {"level": "College", "nameOfSchool": "UP Diliman", "basicEducationDegreeCourse": "BS Statistics",
             "periodOfAttendance": {"from": "2007", "to": "2011"}, "yearGraduated": "2011"},
            {"level": "Elementary", "nameOfSchool": "Marikina Elementary School"},
        ],
        "workExperience": [
            {"positionTitle": "Clerk", "departmentAgencyOfficeCompany": "DILG",
             "periodOfService": {"from": "2020-01-01", "to": "Present"}, "governmentService": True},
        ],
        "voluntaryWork": [
            {"organizationName": "Red Cross", "organizationAddress": "Manila", "numberOfHours": 40.0,
             "periodOfInvolvement": {"from": "2019-01-05", "to": "2019-03-30"}},
        ],
        "otherInformation": {
            "skills": ["Driving", "Typing"],
            "guiltyAdministrativeOffense": False,
            "guiltyAdministrativeOffenseDetails": "Old draft text",
            "convicted": True,
            "convictedDetails": "Traffic case 2012",
            "references": [{"name": "Jose Rizal", "address": "Calamba", "telephoneNo": "049-123"}],
            "declaration": {"agreed": True, "dateAccomplished": "2025-03-01"},
        },
    }
