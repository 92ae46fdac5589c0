"""Response body helpers: buffering and transparent gunzip."""

import zlib
from typing import AsyncIterator, Optional

import httpx

GZIP_MAGIC = b"\x1f\x8b"
_GZIP_WBITS = 16 + zlib.MAX_WBITS


async def buffer_stream(response: httpx.Response) -> bytes:
    """Read a streamed response body fully and release the connection."""
    try:
        return await response.aread()
    finally:
        await response.aclose()


async def gunzip_maybe(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Decompress a byte stream if it is gzipped, pass it through otherwise.

    Concatenated gzip members are inflated one after another. Anything after
    the last member that is not itself gzip (e.g. zero padding) is dropped.
    """
    iterator = aiter(chunks)

    head = b""
    async for chunk in iterator:
        head += chunk
        if len(head) >= len(GZIP_MAGIC):
            break

    if not head.startswith(GZIP_MAGIC):
        if head:
            yield head
        async for chunk in iterator:
            yield chunk
        return

    decompressor = zlib.decompressobj(_GZIP_WBITS)
    data: Optional[bytes] = head
    carry = b""
    while data is not None:
        data, carry = carry + data, b""
        while data:
            if decompressor.eof:
                if len(data) < len(GZIP_MAGIC):
                    # next member header split across chunks
                    carry = data
                    break
                if not data.startswith(GZIP_MAGIC):
                    return
                decompressor = zlib.decompressobj(_GZIP_WBITS)
            output = decompressor.decompress(data)
            if output:
                yield output
            data = decompressor.unused_data if decompressor.eof else b""
        data = await anext(iterator, None)

    output = decompressor.flush()
    if output:
        yield output


class TarballStream:
    """Decompressed body of a tarball response.

    Async iterable of byte chunks. The upstream connection is released when
    the stream is exhausted, fails, or is closed explicitly.
    """

    def __init__(self, response: httpx.Response, chunk_size: int = 65536):
        self.response = response
        self._chunks = gunzip_maybe(response.aiter_bytes(chunk_size=chunk_size))
        self._closed = False

    @property
    def url(self) -> str:
        return str(self.response.url)

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "TarballStream":
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise
        except Exception:
            await self.aclose()
            raise

    async def read(self) -> bytes:
        """Collect the remainder of the stream."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._chunks.aclose()
        await self.response.aclose()

    async def __aenter__(self) -> "TarballStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
