"""Landing page shown after login."""
from __future__ import annotations

from qa_suite.pages.base import BasePage, PageActionError


class DashboardPage(BasePage):
    welcome_message = "h1"
    logout_button = "#logout-button"
    user_menu = "#user-menu"

    async def get_welcome_message(self) -> str:
        return await self.get_element_text(self.welcome_message)

    async def is_dashboard_visible(self, timeout: int = 10000) -> bool:
        """True once the welcome heading renders; False if it never does within ``timeout``."""
        try:
            await self.wait_for_element(self.welcome_message, timeout=timeout)
        except PageActionError:
            return False
        return await self.is_element_visible(self.welcome_message)

    async def logout(self) -> None:
        # the logout button lives inside the user menu on narrow layouts
        if await self.is_element_visible(self.user_menu):
            await self.click_element(self.user_menu)
        await self.click_element(self.logout_button)
