"""Jinja2 rendering of course-match emails."""

from typing import Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from ..logging import get_logger
from .models import NotificationTemplateError

logger = get_logger(__name__, component="notification")


class TemplateRenderer:
    """Render subject, HTML body and plain-text body for one email.

    Templates live in ``tutormatch/notifications/email_templates``. Missing
    variables fail loudly (StrictUndefined) and HTML is autoescaped.
    """

    def __init__(
        self,
        template_dir: str = "email_templates",
        subject_template: str = "course_match_subject.j2",
        html_template: str = "course_match_body.html.j2",
        text_template: str = "course_match_body.txt.j2",
    ):
        self.subject_template_name = subject_template
        self.html_template_name = html_template
        self.text_template_name = text_template

        self.env = Environment(
            loader=PackageLoader("tutormatch.notifications", template_dir),
            autoescape=lambda name: bool(name) and ".html" in name,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, context: Dict) -> Dict[str, str]:
        """Render all three parts.

        Args:
            context: Template variables

        Returns:
            Dict with ``subject`` (single line), ``html_body`` and ``text_body``

        Raises:
            NotificationTemplateError: If any template fails to render
        """
        try:
            subject = self.env.get_template(self.subject_template_name).render(context)
            html_body = self.env.get_template(self.html_template_name).render(context)
            text_body = self.env.get_template(self.text_template_name).render(context)
        except TemplateError as e:
            logger.error(
                f"Template rendering failed: {e}",
                exc_info=True,
                extra={"event": "notification.template.failed"},
            )
            raise NotificationTemplateError(f"Template rendering failed: {e}") from e

        return {
            "subject": " ".join(subject.split()),
            "html_body": html_body,
            "text_body": text_body,
        }
