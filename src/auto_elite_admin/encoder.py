"""Order-preserving conversion of selected images into data URIs."""

import asyncio
import base64
import logging
import mimetypes
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path

from auto_elite_admin.exceptions import ImageReadError

logger = logging.getLogger(__name__)

ImageReader = Callable[[Path], Awaitable[bytes]]
EncodedCallback = Callable[[int, Path, str], None]


async def read_file(path: Path) -> bytes:
    """Read a file without blocking the event loop."""
    return await asyncio.to_thread(path.read_bytes)


def to_data_uri(path: Path, content: bytes) -> str:
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class ImageBatch:
    """Selected files with one positional slot per encoded result.

    A batch is consumed exactly once, when the form is submitted.
    """

    def __init__(self, files: Sequence[Path]) -> None:
        self.files: tuple[Path, ...] = tuple(files)
        self.encoded: list[str | None] = [None] * len(self.files)
        self._consumed = False

    def __len__(self) -> int:
        return len(self.files)

    @property
    def complete(self) -> bool:
        return all(item is not None for item in self.encoded)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def consume(self) -> list[str]:
        """Hand over the encoded images in selection order.

        Raises:
            RuntimeError: If the batch was already consumed or is incomplete
        """
        if self._consumed:
            raise RuntimeError("Image batch has already been consumed")
        if not self.complete:
            raise RuntimeError("Image batch is not fully encoded")
        self._consumed = True
        return [item for item in self.encoded if item is not None]


class ImageBatchEncoder:
    """Encodes a batch of files concurrently, all-or-nothing."""

    def __init__(
        self, reader: ImageReader | None = None, max_concurrent_reads: int = 8
    ) -> None:
        """Initialize the encoder.

        Args:
            reader: Coroutine reading a file's bytes; defaults to a threaded read
            max_concurrent_reads: Maximum number of files read at once
        """
        self.reader = reader or read_file
        self.max_concurrent_reads = max_concurrent_reads
        self._semaphore = asyncio.Semaphore(max_concurrent_reads)

    async def encode(
        self,
        files: Sequence[Path],
        on_encoded: EncodedCallback | None = None,
    ) -> list[str]:
        """Encode files into data URIs in selection order.

        Args:
            files: Selected files, in selection order
            on_encoded: Called with (index, path, data_uri) as each read
                completes, in completion order

        Returns:
            Data URIs positioned like ``files``

        Raises:
            ImageReadError: If any file cannot be read; nothing is returned
        """
        batch = await self.encode_batch(ImageBatch(files), on_encoded)
        return batch.consume()

    async def encode_batch(
        self, batch: ImageBatch, on_encoded: EncodedCallback | None = None
    ) -> ImageBatch:
        """Fill every slot of ``batch``; see :meth:`encode`."""
        if not batch.files:
            return batch

        tasks = [
            asyncio.create_task(self._encode_one(batch, index, on_encoded))
            for index in range(len(batch))
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            batch.encoded = [None] * len(batch)
            raise

        logger.debug(f"Encoded {len(batch)} image(s)")
        return batch

    async def _encode_one(
        self, batch: ImageBatch, index: int, on_encoded: EncodedCallback | None
    ) -> None:
        path = batch.files[index]
        async with self._semaphore:
            try:
                content = await self.reader(path)
            except OSError as e:
                logger.error(f"Failed to read {path.name}: {e}")
                raise ImageReadError(path, e.strerror or str(e)) from e

        data_uri = to_data_uri(path, content)
        batch.encoded[index] = data_uri
        if on_encoded is not None:
            on_encoded(index, path, data_uri)
