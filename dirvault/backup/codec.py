"""Zip archive codec with a bounded compression worker pool."""

import os
import shutil
import threading
import time
import zipfile
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List

from .._utils import PARTIAL_SUFFIX, logger
from ..exceptions import ArchiveCodecError, SourceMissingError
from .models import CompressionResult

# Larger files are streamed under the archive lock instead of read whole
STREAM_THRESHOLD = 1024 * 1024


class ArchiveCodec:
    """Compress a directory tree into one zip file and back.

    Every regular file under the source becomes one entry named by its
    POSIX-style relative path. Workers read small files concurrently; emitting
    an entry into the shared zip stream is serialised by a lock, and files
    over STREAM_THRESHOLD are copied from disk in chunks while holding it.
    """

    def __init__(self, compression_level: int = 6, thread_count: int = 1):
        """Initialize codec.

        Args:
            compression_level: zlib level (0-9) applied to every entry
            thread_count: Worker pool size; values below 1 are coerced to 1
        """
        self.compression_level = compression_level
        self.thread_count = max(1, thread_count)

    def compress(self, source_dir: Path, output_file: Path) -> CompressionResult:
        """Archive every regular file below ``source_dir``.

        The archive is written to ``<output_file>.part`` and renamed onto
        ``output_file`` only once complete, so a crash never leaves a
        truncated file under the final name.

        Args:
            source_dir: Directory to archive
            output_file: Final .zip path

        Returns:
            CompressionResult with byte totals, duration and workers used

        Raises:
            SourceMissingError: ``source_dir`` does not exist
            ArchiveCodecError: any read/write failure; no archive is left behind
        """
        source_dir = Path(source_dir)
        output_file = Path(output_file)
        if not source_dir.is_dir():
            raise SourceMissingError(source_dir)

        start = time.monotonic()
        partial = output_file.with_name(output_file.name + PARTIAL_SUFFIX)

        try:
            files = self._collect_files(source_dir)
            logger.info(
                f"Compressing {len(files)} files from {source_dir} "
                f"(level {self.compression_level}, {self.thread_count} workers)"
            )
            original_bytes = self._write_archive(source_dir, files, partial)
            os.replace(partial, output_file)
        except Exception as e:
            self._discard(partial)
            if isinstance(e, ArchiveCodecError):
                raise
            raise ArchiveCodecError(f"Compression failed: {e}") from e

        result = CompressionResult(
            output_file=output_file,
            original_bytes=original_bytes,
            compressed_bytes=output_file.stat().st_size,
            duration_ms=int((time.monotonic() - start) * 1000),
            workers_used=self.thread_count,
            file_count=len(files),
        )
        logger.info(f"Archive created: {output_file} ({result.compressed_bytes:,} bytes)")
        return result

    def decompress(self, archive_file: Path, target_dir: Path) -> int:
        """Extract ``archive_file`` into ``target_dir`` in stored entry order.

        Existing files at entry paths are overwritten. On failure nothing
        already extracted is cleaned up; the caller owns ``target_dir``.

        Args:
            archive_file: .zip archive to read
            target_dir: Destination, created if absent

        Returns:
            Number of file entries written
        """
        target_dir = Path(target_dir)
        logger.info(f"Extracting archive: {archive_file} to {target_dir}")

        written = 0
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            root = target_dir.resolve()
            with zipfile.ZipFile(archive_file) as zf:
                for info in zf.infolist():
                    target = self._entry_target(root, info.filename)
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    written += 1
        except ArchiveCodecError:
            raise
        except (OSError, zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise ArchiveCodecError(f"Decompression failed: {e}") from e

        logger.info(f"Decompression completed: {written} files to {target_dir}")
        return written

    def _collect_files(self, source_dir: Path) -> List[Path]:
        return [path for path in source_dir.rglob("*") if path.is_file()]

    def _write_archive(self, source_dir: Path, files: List[Path], archive_path: Path) -> int:
        lock = threading.Lock()
        total = 0
        with zipfile.ZipFile(
            archive_path,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
            strict_timestamps=False,
        ) as zf:
            with ThreadPoolExecutor(
                max_workers=self.thread_count,
                thread_name_prefix="dirvault-compress",
            ) as executor:
                futures = [
                    executor.submit(self._add_entry, zf, lock, source_dir, path)
                    for path in files
                ]
                try:
                    for future in as_completed(futures):
                        total += future.result()
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise
        return total

    def _add_entry(self, zf: zipfile.ZipFile, lock: threading.Lock, source_dir: Path, path: Path) -> int:
        entry_name = path.relative_to(source_dir).as_posix()
        try:
            size = path.stat().st_size
            if size > STREAM_THRESHOLD:
                with lock:
                    zf.write(
                        path,
                        entry_name,
                        compress_type=zipfile.ZIP_DEFLATED,
                        compresslevel=self.compression_level,
                    )
                return size

            info = zipfile.ZipInfo.from_file(path, entry_name, strict_timestamps=False)
            data = path.read_bytes()
            with lock:
                zf.writestr(
                    info,
                    data,
                    compress_type=zipfile.ZIP_DEFLATED,
                    compresslevel=self.compression_level,
                )
        except OSError as e:
            raise ArchiveCodecError(f"Failed to compress file {path}: {e}") from e
        return len(data)

    @staticmethod
    def _entry_target(root: Path, name: str) -> Path:
        target = (root / name).resolve()
        if target != root and root not in target.parents:
            raise ArchiveCodecError(f"Unsafe entry path in archive: {name}")
        return target

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial archive {path}: {e}")
