"""Student list (``/Teacher/v2/en/students``)."""
from __future__ import annotations

from playwright.async_api import Locator

from qa_suite.pages.base import BasePage

STUDENT_LIST_PATH = "/Teacher/v2/en/students"


class StudentListPage(BasePage):
    search_input = "#studentSearch"
    student_rows = ".student-row"
    student_name_cell = ".student-name"
    delete_button = '[data-testid="delete-student"], .delete-student'
    confirm_delete_button = '[data-testid="confirm-delete"], .confirm-delete'

    async def navigate_to_list(self) -> None:
        await self.navigate(STUDENT_LIST_PATH)

    async def search_student(self, query: str) -> None:
        await self.fill_input(self.search_input, query)
        await self.page.keyboard.press("Enter")

    def student_row(self, name: str) -> Locator:
        return self.page.locator(self.student_rows).filter(has_text=name)

    async def is_student_present(self, name: str) -> bool:
        return await self.student_row(name).first.is_visible()

    async def open_student_details(self, name: str) -> None:
        await self.student_row(name).locator(self.student_name_cell).first.click()

    async def delete_student(self, name: str) -> None:
        """Delete the row for ``name`` and wait until it leaves the list."""
        row = self.student_row(name).first
        await row.locator(self.delete_button).first.click()
        confirm = self.page.locator(self.confirm_delete_button).first
        if await confirm.is_visible():
            await confirm.click()
        await row.wait_for(state="detached")
