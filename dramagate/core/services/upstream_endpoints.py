"""Upstream endpoint paths and request payloads."""

from typing import Any, Dict

from dramagate.domain.models.common import UpstreamPath

CATALOG_PATH = UpstreamPath("/drama-box/he001/theater")
SEARCH_PATH = UpstreamPath("/drama-box/search/suggest")
BATCH_LOAD_PATH = UpstreamPath("/drama-box/chapterv2/batch/load")

# Fixed fields the batch chapter-load endpoint expects on every call
BATCH_LOAD_FIXED_FIELDS: Dict[str, Any] = {
    "boundaryIndex": 0,
    "comingPlaySectionId": -1,
    "currencyPlaySource": "discover_new_rec_new",
    "needEndRecommend": 0,
    "currencyPlaySourceName": "",
    "preLoad": False,
    "rid": "",
    "pullCid": "",
    "loadDirection": 0,
    "startUpKey": "",
}


def catalog_payload(page_number: int, page_size: int, channel_id: int) -> Dict[str, Any]:
    return {
        "newChannelStyle": 1,
        "isNeedRank": 1,
        "pageNo": page_number,
        "index": (page_number - 1) * page_size,
        "channelId": channel_id,
    }


def search_payload(keyword: str) -> Dict[str, Any]:
    return {"keyword": keyword}


def batch_load_payload(title_id: str, batch_index: int) -> Dict[str, Any]:
    payload = dict(BATCH_LOAD_FIXED_FIELDS)
    payload["bookId"] = str(title_id)
    payload["index"] = batch_index
    return payload
