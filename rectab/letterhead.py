from datetime import date
from typing import Any, Mapping, Optional

from pydantic import BaseModel


class Letterhead(BaseModel):
    """The corporate identity printed on PDF exports and print documents.

    Attributes:
        company: The name of the company, shown in the header band.
        address: Postal address.
        phone: Phone number.
        email: Contact e-mail address.
        website: Web address, also repeated in the footer.
        confidentiality: The note printed in the footer of every page.
        accent: Accent color as a hex string (header rule, table header).
        band: Background color of the header band as a hex string.
    """

    company: str = "VALOR PHARMACEUTICALS"
    address: str = "124/A Industrial Triangle, Kahuta Road, Islamabad PAKISTAN"
    phone: str = "+92-51-1234567"
    email: str = "info@valorpharma.com"
    website: str = "www.valorpharma.com"
    confidentiality: str = "Confidential - For Internal Use Only"
    accent: str = "#00BFFF"
    band: str = "#0D1117"

    @property
    def contact_line(self) -> str:
        return f"Tel: {self.phone} | Email: {self.email} | Web: {self.website}"

    @property
    def footer_line(self) -> str:
        return f"{self.confidentiality} | {self.website}"

    @classmethod
    def from_settings(
        cls, overrides: Optional[Mapping[str, Any]] = None
    ) -> "Letterhead":
        """Create a letterhead, replacing defaults with configured values."""
        if not overrides:
            return cls()
        return cls.model_validate(dict(overrides))


def generated_label(when: date) -> str:
    """The "Generated: <date>" line, like "Generated: March 5, 2024"."""
    return f"Generated: {when:%B} {when.day}, {when.year}"
