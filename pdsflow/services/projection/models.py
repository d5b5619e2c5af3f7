"""PDS record models.

The record arrives JSON-shaped with camelCase keys. Models are lenient: every
field is optional so a partially filled draft still renders, and unknown keys
are ignored.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _RecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


Text = Optional[str]
Number = Optional[Union[float, str]]


class Address(_RecordModel):
    houseBlockLotNo: Text = None
    street: Text = None
    subdivisionVillage: Text = None
    barangay: Text = None
    cityMunicipality: Text = None
    province: Text = None
    zipCode: Text = None


class PermanentAddress(Address):
    sameAsResidential: bool = False


class PersonalInfo(_RecordModel):
    surname: Text = None
    firstName: Text = None
    middleName: Text = None
    nameExtension: Text = None
    dateOfBirth: Text = None
    placeOfBirth: Text = None
    sexAtBirth: Text = None
    civilStatus: Text = None
    civilStatusOthers: Text = None
    height: Number = None
    weight: Number = None
    bloodType: Text = None
    umidNo: Text = None
    pagibigNo: Text = None
    philhealthNo: Text = None
    sssNo: Text = None
    philsysNo: Text = None
    tinNo: Text = None
    agencyEmployeeNo: Text = None
    citizenship: Text = None
    dualCitizenshipType: Text = None
    dualCitizenshipCountry: Text = None
    residentialAddress: Address = Field(default_factory=Address)
    permanentAddress: PermanentAddress = Field(default_factory=PermanentAddress)
    telephoneNo: Text = None
    mobileNo: Text = None
    emailAddress: Text = None


class PersonName(_RecordModel):
    surname: Text = None
    firstName: Text = None
    middleName: Text = None
    nameExtension: Text = None


class Spouse(PersonName):
    occupation: Text = None
    employerBusinessName: Text = None
    businessAddress: Text = None
    telephoneNo: Text = None


class Child(_RecordModel):
    fullName: Text = None
    dateOfBirth: Text = None


class FamilyBackground(_RecordModel):
    spouse: Spouse = Field(default_factory=Spouse)
    father: PersonName = Field(default_factory=PersonName)
    mother: PersonName = Field(default_factory=PersonName)
    children: List[Child] = Field(default_factory=list)


class Period(_RecordModel):
    from_: Text = Field(default=None, alias="from")
    to: Text = None


class Education(_RecordModel):
    level: Text = None
    nameOfSchool: Text = None
    basicEducationDegreeCourse: Text = None
    periodOfAttendance: Period = Field(default_factory=Period)
    highestLevelUnitsEarned: Text = None
    yearGraduated: Text = None
    scholarshipAcademicHonors: Text = None


class Eligibility(_RecordModel):
    careerService: Text = None
    rating: Text = None
    dateOfExaminationConferment: Text = None
    placeOfExaminationConferment: Text = None
    licenseNumber: Text = None
    licenseValidity: Text = None


class WorkExperience(_RecordModel):
    positionTitle: Text = None
    departmentAgencyOfficeCompany: Text = None
    monthlySalary: Number = None
    salaryGrade: Text = None
    statusOfAppointment: Text = None
    governmentService: Optional[bool] = None
    periodOfService: Period = Field(default_factory=Period)


class VoluntaryWork(_RecordModel):
    organizationName: Text = None
    organizationAddress: Text = None
    periodOfInvolvement: Period = Field(default_factory=Period)
    numberOfHours: Number = None
    positionNatureOfWork: Text = None


class Training(_RecordModel):
    title: Text = None
    periodOfAttendance: Period = Field(default_factory=Period)
    numberOfHours: Number = None
    typeOfLD: Text = None
    conductedSponsoredBy: Text = None


class Reference(_RecordModel):
    name: Text = None
    address: Text = None
    telephoneNo: Text = None


class GovernmentId(_RecordModel):
    type: Text = None
    idNumber: Text = None
    dateIssued: Text = None


class Declaration(_RecordModel):
    agreed: bool = False
    signatureData: Text = None
    signatureUrl: Text = None
    dateAccomplished: Text = None


class OtherInformation(_RecordModel):
    skills: List[str] = Field(default_factory=list)
    recognitions: List[str] = Field(default_factory=list)
    memberships: List[str] = Field(default_factory=list)

    relatedThirdDegree: Optional[bool] = None
    relatedThirdDegreeDetails: Text = None
    relatedFourthDegree: Optional[bool] = None
    relatedFourthDegreeDetails: Text = None
    guiltyAdministrativeOffense: Optional[bool] = None
    guiltyAdministrativeOffenseDetails: Text = None
    criminallyCharged: Optional[bool] = None
    criminallyChargedDetails: Text = None
    criminallyChargedDateFiled: Text = None
    criminallyChargedStatus: Text = None
    convicted: Optional[bool] = None
    convictedDetails: Text = None
    separatedFromService: Optional[bool] = None
    separatedFromServiceDetails: Text = None
    candidateNationalLocal: Optional[bool] = None
    candidateNationalLocalDetails: Text = None
    resignedForCandidacy: Optional[bool] = None
    resignedForCandidacyDetails: Text = None
    immigrantOrPermanentResident: Optional[bool] = None
    immigrantOrPermanentResidentCountry: Text = None
    indigenousGroupMember: Optional[bool] = None
    indigenousGroupName: Text = None
    personWithDisability: Optional[bool] = None
    pwdIdNumber: Text = None
    soloParent: Optional[bool] = None
    soloParentIdNumber: Text = None

    references: List[Reference] = Field(default_factory=list)
    governmentIssuedId: GovernmentId = Field(default_factory=GovernmentId)
    declaration: Declaration = Field(default_factory=Declaration)


class PDSRecord(_RecordModel):
    """Canonical Personal Data Sheet aggregate."""

    personalInfo: PersonalInfo = Field(default_factory=PersonalInfo)
    familyBackground: FamilyBackground = Field(default_factory=FamilyBackground)
    educationalBackground: List[Education] = Field(default_factory=list)
    eligibility: List[Eligibility] = Field(default_factory=list)
    workExperience: List[WorkExperience] = Field(default_factory=list)
    voluntaryWork: List[VoluntaryWork] = Field(default_factory=list)
    trainings: List[Training] = Field(default_factory=list)
    otherInformation: OtherInformation = Field(default_factory=OtherInformation)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-shaped dict using the record's public key names."""

        return self.model_dump(by_alias=True, mode="json")


class RenderOptions(BaseModel):
    """Caller supplied switches for one render call."""

    model_config = ConfigDict(populate_by_name=True)

    include_signature: bool = Field(default=False, alias="includeSignature")
    use_current_date: bool = Field(default=False, alias="useCurrentDate")
    today: Optional[date] = None
    debug_grid: bool = False


def coerce_record(record: Union[PDSRecord, Dict[str, Any]]) -> PDSRecord:
    if isinstance(record, PDSRecord):
        return record
    return PDSRecord.model_validate(record)
