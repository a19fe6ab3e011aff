from jinja2 import Environment, FileSystemLoader, StrictUndefined
import logging
from models.delivery_engine import EngineType
from models.message import RenderedMessage
from senders.base_sender import BaseSender
from senders.smtp_sender import SMTPSender
from senders.aws_ses_sender import AWSSESSender
from senders.mock_senders import MockSender

logger = logging.getLogger(__name__)

SECURITY_ALERT_FOLDER = "security_alert"


def _autoescape(template_name: str) -> bool:
    # Only the HTML body is escaped; subject and text bodies stay literal
    return template_name is not None and template_name.endswith(".html.j2")


class EmailFactory:
    def __init__(self, template_dir: str):
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=_autoescape,
            undefined=StrictUndefined,
        )

    def get_sender(self, provider: str, credentials_json: dict) -> BaseSender:
        provider = (provider or "").lower()
        if provider == EngineType.SMTP:
            return SMTPSender(credentials_json)
        elif provider == EngineType.AWS_SES:
            return AWSSESSender(credentials_json)
        elif provider == EngineType.MOCK:
            return MockSender(credentials_json)
        else:
            raise ValueError(f"Unsupported provider: {provider}")

    def render_template(self, folder: str, template_name: str, context: dict) -> str:
        """
        folder: template set, e.g. security_alert
        template_name: subject.txt, body.html.j2, body.txt.j2
        """
        # jinja2 loader paths always use forward slashes
        template_path = f"{folder.lower()}/{template_name}"
        logger.debug(f"Loading template: {template_path}")
        try:
            template = self.env.get_template(template_path)
            return template.render(context)
        except Exception as e:
            logger.error(f"Failed to load template {template_path}: {e}")
            raise

    def render_security_alert(self, platform: str, link: str, from_email: str) -> RenderedMessage:
        context = {"platform": platform, "link": link}
        return RenderedMessage(
            subject=self.render_template(SECURITY_ALERT_FOLDER, "subject.txt", context),
            html_body=self.render_template(SECURITY_ALERT_FOLDER, "body.html.j2", context),
            text_body=self.render_template(SECURITY_ALERT_FOLDER, "body.txt.j2", context),
            reply_to=from_email,
            headers={"List-Unsubscribe": f"<mailto:{from_email}?subject=unsubscribe>"},
        )
