from __future__ import annotations

import json
import os
from pathlib import Path

from runbook.core.result import Err, Ok, Result
from runbook.core.structured import as_str_dict
from runbook.release.errors import MetadataIOError
from runbook.release.gateways import PackageMetadata


class JsonMetadataStore:
    """package.json (or any JSON object file) at one fixed path.

    Reads parse the whole document. Writes render the whole document with
    key order kept, 2-space indent and a trailing newline, then swap it in
    with ``os.replace`` so a reader never sees half a package.json.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @property
    def staging_path(self) -> Path:
        """Sibling file the next document is written to before the swap."""
        return self.path.with_name(f".{self.path.name}.{os.getpid()}.tmp")

    def read(self) -> Result[PackageMetadata, MetadataIOError]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Err(MetadataIOError(path=self.path, message="file not found"))
        except (OSError, UnicodeDecodeError) as e:
            return Err(MetadataIOError(path=self.path, message=str(e)))

        try:
            obj: object = json.loads(text)
        except json.JSONDecodeError as e:
            return Err(MetadataIOError(path=self.path, message=f"invalid JSON: {e}"))

        data = as_str_dict(obj)
        if data is None:
            return Err(MetadataIOError(path=self.path, message="expected a JSON object"))
        return Ok(PackageMetadata(data=data))

    def write(self, metadata: PackageMetadata) -> Result[None, MetadataIOError]:
        content = json.dumps(metadata.data, indent=2, ensure_ascii=False) + "\n"
        staging = self.staging_path
        try:
            with staging.open("w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(staging, self.path)
        except OSError as e:
            return Err(MetadataIOError(path=self.path, message=str(e)))
        finally:
            staging.unlink(missing_ok=True)
        return Ok(None)
