"""Login screen (``/login``)."""
from __future__ import annotations

from qa_suite.pages.base import BasePage

LOGIN_PATH = "/login"


class LoginPage(BasePage):
    email_input = "#email"
    password_input = "#password"
    login_button = "#login-button"
    error_message = ".error-message"

    async def open(self) -> None:
        await self.navigate(LOGIN_PATH)

    async def login(self, email: str, password: str) -> None:
        await self.fill_input(self.email_input, email)
        await self.fill_input(self.password_input, password)
        await self.click_element(self.login_button)

    async def get_error_message(self) -> str:
        """Text of the failed-login banner (waits for it to appear)."""
        return await self.get_element_text(self.error_message)

    async def is_login_button_visible(self) -> bool:
        return await self.is_element_visible(self.login_button)
