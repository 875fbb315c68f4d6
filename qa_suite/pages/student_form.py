"""Add-student form (``/Teacher/v2/en/students/add``)."""
from __future__ import annotations

from typing import Optional

from playwright.async_api import Page

from qa_suite.pages.base import BasePage

STUDENT_FORM_PATH = "/Teacher/v2/en/students/add"


def split_full_name(full_name: str) -> tuple[str, str]:
    first_name, _, last_name = full_name.strip().partition(" ")
    return first_name, last_name


class StudentFormPage(BasePage):
    def __init__(self, page: Page, base_url: Optional[str] = None) -> None:
        super().__init__(page, base_url)
        self.first_name_input = page.locator("#FirstName")
        self.last_name_input = page.locator("#LastName")
        self.email_input = page.locator("#Email")
        self.phone_input = page.locator("#Phone")
        self.student_type_dropdown = page.locator("#StudentType")
        self.parent_name_input = page.locator("#ParentName")
        self.save_button = page.locator('button:has-text("Save")')
        self.success_alert = page.locator(".alert-success")

    async def open(self) -> None:
        await self.navigate(STUDENT_FORM_PATH)

    async def _fill_person(self, full_name: str, email: str) -> None:
        first_name, last_name = split_full_name(full_name)
        await self.first_name_input.fill(first_name)
        await self.last_name_input.fill(last_name)
        await self.email_input.fill(email)

    async def add_adult_student(self, full_name: str, email: str, phone: str = "1234567890") -> None:
        await self._fill_person(full_name, email)
        await self.phone_input.fill(phone)
        await self.student_type_dropdown.select_option("Adult")
        await self.save_button.click()

    async def add_child_student(self, full_name: str, email: str, parent_name: str) -> None:
        await self._fill_person(full_name, email)
        await self.student_type_dropdown.select_option("Child")
        # parent field is only rendered once "Child" is selected
        await self.parent_name_input.fill(parent_name)
        await self.save_button.click()

    async def get_success_message(self) -> str:
        await self.success_alert.wait_for()
        return (await self.success_alert.text_content() or "").strip()
