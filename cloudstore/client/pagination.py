"""Lazy iteration over page-token based listings."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Generic, TypeVar

from cloudstore.client.models import FolderItem, ListFolderResponse
from cloudstore.client.raw_client import RawClient
from cloudstore.client.request_models import ListFolderRequest

ItemT = TypeVar("ItemT")
RequestT = TypeVar("RequestT", bound=ListFolderRequest)
ResponseT = TypeVar("ResponseT")


class PaginatedSequence(Generic[RequestT, ResponseT, ItemT]):
    """Forward-only sequence of items fetched one page at a time.

    Each ``iter()`` starts again from the first page. A failing page load
    raises its :class:`~cloudstore.exceptions.StorageError` once and ends that
    iteration; the error is not retried here.
    """

    def __init__(
        self,
        request: RequestT,
        loader: Callable[[RequestT], ResponseT],
        get_items: Callable[[ResponseT], Iterable[ItemT]],
        get_next_page_token: Callable[[ResponseT], str],
    ):
        """Initialize the sequence.

        Args:
            request: Request for the first page.
            loader: Remote call returning one page.
            get_items: Projection extracting the items of a page.
            get_next_page_token: Projection extracting the token of the
                following page. An empty token marks the last page.
        """
        self._request = request
        self._loader = loader
        self._get_items = get_items
        self._get_next_page_token = get_next_page_token

    def __iter__(self) -> Iterator[ItemT]:
        request = self._request
        while True:
            response = self._loader(request)
            items = list(self._get_items(response))
            yield from items
            page_token = self._get_next_page_token(response)
            if not page_token or not items:
                return
            request = request.model_copy(update={"page_token": page_token})


def list_folder_items(
    client: RawClient, folder_id: str, page_size: int = 100
) -> PaginatedSequence[ListFolderRequest, ListFolderResponse, FolderItem]:
    """Iterate over every item of a folder."""
    return PaginatedSequence(
        ListFolderRequest(folder_id=folder_id, page_size=page_size),
        client.list_folder,
        lambda response: response.items,
        lambda response: response.next_page_token,
    )
