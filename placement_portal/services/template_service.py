"""
Template Service - downloadable CSV templates for each batch type.

Each template carries the full header set (required + optional) and a few
sample rows. The samples are valid as they stand: the roster template
ingests cleanly into an empty store, and the marks and approval templates
use the same roll numbers and names, so they ingest cleanly once the
roster template is in.
"""

import csv
import io
from typing import Iterable, List

from placement_portal.schemas.schemas import BatchType, SubjectDefinition
from placement_portal.services.schema_validator import optional_headers, required_headers


SAMPLE_STUDENTS = [
    {
        "Name": "Aarav Sharma",
        "Roll Number": "CS2021001",
        "Email": "aarav.sharma@college.edu",
        "CGPA": "8.6",
        "Semester": "6",
        "Branch": "Computer Science",
        "Phone": "9876543210",
        "Address": "12 MG Road, Pune",
        "Placement Status": "Placed",
        "Company": "Infosys",
        "Package": "6.5 LPA",
        "Joining Date": "2025-07-01",
        "Skills": "Python;SQL;React",
        "Projects": "Placement Portal;Chat Application",
        "Internships": "Infosys Summer Internship",
        "Certifications": "AWS Cloud Practitioner",
    },
    {
        "Name": "Diya Patel",
        "Roll Number": "CS2021002",
        "Email": "diya.patel@college.edu",
        "CGPA": "7.9",
        "Semester": "6",
        "Branch": "Computer Science",
        "Phone": "9823456710",
        "Address": "4 Residency Road, Bengaluru",
        "Placement Status": "In Process",
        "Company": "",
        "Package": "",
        "Joining Date": "",
        "Skills": "Java;Spring Boot",
        "Projects": "Library Management System",
        "Internships": "",
        "Certifications": "Oracle Certified Java Programmer",
    },
    {
        "Name": "Rohan Verma",
        "Roll Number": "EC2021015",
        "Email": "rohan.verma@college.edu",
        "CGPA": "8.1",
        "Semester": "6",
        "Branch": "Electronics",
        "Phone": "9988776655",
        "Address": "27 Park Street, Kolkata",
        "Placement Status": "Placed",
        "Company": "TCS",
        "Package": "₹4,50,000",
        "Joining Date": "2025-08-16",
        "Skills": "Embedded C;MATLAB",
        "Projects": "IoT Weather Station",
        "Internships": "BEL Industrial Training",
        "Certifications": "",
    },
]

# Percentages, scaled to each subject's maximum and cycled across subjects
SAMPLE_MARK_PERCENTAGES = [
    [87, 65, 78, 91, 72, 80],
    [55, 62, 48, 70, 66, 74],
    [92, 88, 79, 85, 90, 81],
]
SAMPLE_ATTENDANCE = ["86", "78", "92"]

SAMPLE_REQUESTS = [
    {
        "Type": "Profile Update",
        "Description": "Update permanent address after relocation",
        "Documents": "Address Proof;ID Card",
        "Urgency": "medium",
    },
    {
        "Type": "Document Verification",
        "Description": "Verify internship completion certificate",
        "Documents": "Internship Certificate",
        "Urgency": "high",
    },
    {
        "Type": "Placement Approval",
        "Description": "Approve offer letter for campus placement record",
        "Documents": "Offer Letter",
        "Urgency": "low",
    },
]


def _sample_mark(percentage: float, subject: SubjectDefinition) -> str:
    return f"{round(percentage * subject.max_marks / 100, 1):g}"


def sample_rows(batch_type: BatchType, subjects: Iterable[SubjectDefinition] = ()) -> List[dict]:
    """Sample rows as column -> cell dicts."""
    subjects = list(subjects)
    if batch_type == BatchType.roster:
        return [dict(student) for student in SAMPLE_STUDENTS]

    if batch_type == BatchType.marks:
        rows = []
        for student, percentages, attendance in zip(
            SAMPLE_STUDENTS, SAMPLE_MARK_PERCENTAGES, SAMPLE_ATTENDANCE
        ):
            row = {
                "Roll Number": student["Roll Number"],
                "Student Name": student["Name"],
                "CGPA": student["CGPA"],
                "Attendance": attendance,
            }
            for index, subject in enumerate(subjects):
                row[subject.code] = _sample_mark(percentages[index % len(percentages)], subject)
            rows.append(row)
        return rows

    if batch_type == BatchType.approval:
        rows = []
        for student, request in zip(SAMPLE_STUDENTS, SAMPLE_REQUESTS):
            rows.append({
                "Type": request["Type"],
                "Student Name": student["Name"],
                "Roll Number": student["Roll Number"],
                "Email": student["Email"],
                "Phone": student["Phone"],
                "CGPA": student["CGPA"],
                "Semester": student["Semester"],
                "Description": request["Description"],
                "Documents": request["Documents"],
                "Urgency": request["Urgency"],
            })
        return rows

    raise ValueError(f"Unknown batch type: {batch_type}")


def generate_template(batch_type: BatchType, subjects: Iterable[SubjectDefinition] = ()) -> str:
    """
    CSV template text: header row plus sample rows.

    Args:
        batch_type: marks, roster or approval
        subjects: Subject catalogue (adds one column per subject for marks)

    Returns:
        UTF-8 CSV text, "\\n" line endings
    """
    subjects = list(subjects)
    headers = required_headers(batch_type, subjects) + optional_headers(batch_type)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in sample_rows(batch_type, subjects):
        writer.writerow({h: row.get(h, "") for h in headers})
    return buffer.getvalue()
