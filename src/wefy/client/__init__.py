"""HTTP client module for wefy.

Classes:
    :class:`Client` -- async client; verb helpers return decoded bodies.
    :class:`RequestPipeline` -- drives one call through the extension lifecycle.
    :class:`HttpxTransport` -- default :class:`Transport` over :class:`httpx.AsyncClient`.
    :class:`BodyCodec` -- content-type driven body decoding.

Example::

    from wefy.client import Client

    async with Client("https://api.example.com") as api:
        users = await api.get("/users")
"""

from wefy.client.client import Client, RawVerbs
from wefy.client.codec import BodyCodec
from wefy.client.pipeline import RequestPipeline
from wefy.client.transport import HttpxTransport, Transport

__all__ = ["Client", "RawVerbs", "RequestPipeline", "HttpxTransport", "Transport", "BodyCodec"]
