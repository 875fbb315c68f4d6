"""Read-only student details view."""
from __future__ import annotations

from dataclasses import dataclass

from qa_suite.pages.base import BasePage


@dataclass
class StudentDetails:
    name: str
    email: str
    phone: str
    type: str
    parent: str = ""


class StudentDetailsPage(BasePage):
    name_field = "#studentName"
    email_field = "#studentEmail"
    phone_field = "#studentPhone"
    type_field = "#studentType"
    parent_field = "#parentName"

    async def get_student_details(self) -> StudentDetails:
        details = StudentDetails(
            name=(await self.get_element_text(self.name_field)).strip(),
            email=(await self.get_element_text(self.email_field)).strip(),
            phone=(await self.get_element_text(self.phone_field)).strip(),
            type=(await self.get_element_text(self.type_field)).strip(),
        )
        if details.type == "Child":
            details.parent = (await self.get_element_text(self.parent_field)).strip()
        return details
