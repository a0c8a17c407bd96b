"""Card message builder for Google Chat."""

from typing import Any

LOOKER_LOGO_URL = "https://wwwstatic-d.lookercdn.com/logos/looker_black.svg"
DEFAULT_TITLE = "Looker"
LINK_BUTTON_TEXT = "See data in Looker"


def build_report_card(title: str, message: str, url: str) -> dict[str, Any]:
    """Build a spaces.messages.create body linking back to a report.

    Args:
        title: Card header title
        message: Paragraph text shown under the header
        url: Report URL opened by the button
    """
    open_link = {"openLink": {"url": url}}
    return {
        "text": "",
        "cards": [
            {
                "header": {
                    "title": title or DEFAULT_TITLE,
                    "imageUrl": LOOKER_LOGO_URL,
                },
                "sections": [
                    {
                        "widgets": [
                            {"textParagraph": {"text": message or ""}},
                            {
                                "buttons": [
                                    {"textButton": {"text": LINK_BUTTON_TEXT, "onClick": open_link}},
                                ],
                            },
                        ],
                    },
                ],
            },
        ],
    }
