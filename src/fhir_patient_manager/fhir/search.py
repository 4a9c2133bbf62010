"""Patient search and pagination.

A search is either a fresh query built from caller filters or the
continuation of an earlier one through a page link issued by the server.
Page links are treated as opaque: they are requested verbatim and only
their query string is read back, to report the filters in effect.
"""

import logging
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

import requests

from fhir_patient_manager.fhir.client import FHIRClient
from fhir_patient_manager.fhir.mapper import is_patient, to_summary
from fhir_patient_manager.models.search import SearchPage
from fhir_patient_manager.utils.exceptions import (
    RemoteFetchError,
    ValidationError,
    describe_remote_error,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT = "-_lastUpdated"

# Caller filter name -> FHIR search parameter
FILTER_PARAMETERS = {
    "name": "name:contains",
    "phone": "telecom",
    "birthdate": "birthdate",
    "id": "_id",
}

# Parameters that only position the cursor and are not part of the query
PAGING_PARAMETERS = frozenset({"_count", "_offset", "_getpagesoffset", "_page", "page"})

LINK_RELATIONS = ("self", "next", "previous", "first", "last")


def build_search_params(filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Translate caller filters into FHIR search parameters.

    Unknown filter names and empty values are ignored.

    Example:
        >>> build_search_params({"name": "jan", "id": "", "phone": None})
        {'name:contains': 'jan'}
    """
    params: dict[str, str] = {}
    for key, parameter in FILTER_PARAMETERS.items():
        value = (filters or {}).get(key)
        if value is not None and str(value) != "":
            params[parameter] = str(value)
    return params


def search_patients(
    client: FHIRClient,
    search_params: Optional[Mapping[str, Any]] = None,
    page_url: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: str = DEFAULT_SORT,
) -> SearchPage:
    """Run one patient search request and map the resulting page.

    Args:
        client: FHIR client used for the single outbound request
        search_params: FHIR search parameters (already in server vocabulary)
        page_url: Page link from an earlier SearchPage; wins over search_params
        page_size: _count for fresh searches
        sort: _sort for fresh searches

    Returns:
        SearchPage with mapped patients, total and page links

    Raises:
        ValidationError: If page_url is not an http(s) URL
        RemoteFetchError: If the request fails or the body is not a JSON Bundle
    """
    search_params = search_params or {}

    try:
        if page_url:
            if not page_url.startswith(("http://", "https://")):
                raise ValidationError(f"Invalid page URL: {page_url}")
            logger.info(f"Requesting patient page: {page_url}")
            bundle = client.get_page(page_url)
        else:
            params = build_query(search_params, page_size=page_size, sort=sort)
            logger.info(f"Searching patients: {client.collection_url} params={params}")
            bundle = client.search_patients(params)
    except (requests.RequestException, ValueError) as e:
        message, status_code, remote_message = describe_remote_error(e)
        logger.error(f"Error fetching patients: {message}")
        raise RemoteFetchError(
            f"Failed to fetch patients: {message}",
            status_code=status_code,
            remote_message=remote_message,
        ) from e

    if not isinstance(bundle, dict):
        raise RemoteFetchError("Failed to fetch patients: response is not a FHIR Bundle")

    try:
        page = parse_bundle(bundle)
    except ValueError as e:
        logger.error(f"Malformed patient Bundle: {e}")
        raise RemoteFetchError(f"Failed to fetch patients: {e}") from e

    if search_params.get("_sort"):
        page.current_search_params["_sort"] = str(search_params["_sort"])

    logger.info(
        f"Fetched {len(page.patients)} patients (total={page.total}, "
        f"next={page.has_next_page}, previous={page.has_prev_page})"
    )
    return page


def build_query(
    search_params: Mapping[str, Any],
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: str = DEFAULT_SORT,
) -> dict[str, str]:
    """Combine paging defaults with caller parameters (caller wins)."""
    params = {"_count": str(page_size), "_sort": sort}
    for key, value in search_params.items():
        if value is not None:
            params[key] = str(value)
    return params


def parse_bundle(bundle: Mapping[str, Any]) -> SearchPage:
    """Map a search Bundle to a SearchPage.

    Raises:
        ValueError: If Bundle.entry or Bundle.link is not a list of objects
    """
    patients = []
    for entry in _object_list(bundle, "entry"):
        resource = entry.get("resource")
        if not is_patient(resource):
            continue
        summary = to_summary(resource)
        if summary is not None:
            patients.append(summary)

    links = extract_links(bundle)
    return SearchPage(
        patients=patients,
        total=bundle.get("total") or 0,
        current_search_params=normalize_search_params(links.get("self")),
        self_link=links.get("self"),
        next_link=links.get("next"),
        prev_link=links.get("previous"),
        first_link=links.get("first"),
        last_link=links.get("last"),
    )


def extract_links(bundle: Mapping[str, Any]) -> dict[str, str]:
    """Return the first URL for each paging relation present in the Bundle."""
    links: dict[str, str] = {}
    for link in _object_list(bundle, "link"):
        relation = link.get("relation")
        url = link.get("url")
        if relation in LINK_RELATIONS and url and relation not in links:
            links[relation] = url
    return links


def normalize_search_params(self_link: Optional[str]) -> dict[str, str]:
    """Recover the effective filters from a page's self link.

    Paging-only parameters are dropped so the result is the same on every
    page of one query.

    Example:
        >>> normalize_search_params(
        ...     "http://fhir/Patient?name%3Acontains=jan&_count=10&_getpagesoffset=20"
        ... )
        {'name:contains': 'jan'}
    """
    if not self_link:
        return {}

    params: dict[str, str] = {}
    for key, value in parse_qsl(urlsplit(self_link).query, keep_blank_values=True):
        if key.lower() not in PAGING_PARAMETERS:
            params[key] = value
    return params


def _object_list(bundle: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = bundle.get(key) or []
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        raise ValueError(f"Bundle.{key} must be a list of objects")
    return items
