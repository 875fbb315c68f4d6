"""Page objects, one per application screen."""
from qa_suite.pages.base import BasePage, PageActionError
from qa_suite.pages.dashboard import DashboardPage
from qa_suite.pages.login import LoginPage
from qa_suite.pages.sources import SourceFormData, SourcesPage
from qa_suite.pages.student_details import StudentDetails, StudentDetailsPage
from qa_suite.pages.student_form import StudentFormPage
from qa_suite.pages.student_list import StudentListPage

__all__ = [
    "BasePage",
    "DashboardPage",
    "LoginPage",
    "PageActionError",
    "SourceFormData",
    "SourcesPage",
    "StudentDetails",
    "StudentDetailsPage",
    "StudentFormPage",
    "StudentListPage",
]
