"""Search result page model."""

from dataclasses import dataclass, field
from typing import Any, Optional

from fhir_patient_manager.models.patient import PatientSummary


@dataclass
class SearchPage:
    """One page of patient search results.

    The link attributes are the server's opaque page URLs; pass them back
    unchanged to move between pages.

    Attributes:
        patients: Patients on this page
        total: Total matches reported by the server (0 when not reported)
        current_search_params: Effective filters of this page without paging parameters
        self_link: URL of this page
        next_link: URL of the next page, None on the last page
        prev_link: URL of the previous page, None on the first page
        first_link: URL of the first page
        last_link: URL of the last page

    Example:
        >>> page = service.search({"name": "Jane"})
        >>> if page.has_next_page:
        ...     page = service.search(page_url=page.next_link)
    """

    patients: list[PatientSummary] = field(default_factory=list)
    total: int = 0
    current_search_params: dict[str, str] = field(default_factory=dict)
    self_link: Optional[str] = None
    next_link: Optional[str] = None
    prev_link: Optional[str] = None
    first_link: Optional[str] = None
    last_link: Optional[str] = None

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_link)

    @property
    def has_prev_page(self) -> bool:
        return bool(self.prev_link)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the web client expects."""
        return {
            "patients": [p.to_dict() for p in self.patients],
            "total": self.total,
            "currentSearchParams": dict(self.current_search_params),
            "selfLink": self.self_link,
            "nextLink": self.next_link,
            "prevLink": self.prev_link,
            "firstLink": self.first_link,
            "lastLink": self.last_link,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }
