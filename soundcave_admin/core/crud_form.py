"""Add/edit form for any entity: values, uploads, validation, submit."""
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from soundcave_admin.core.api_client import SoundCaveClient
from soundcave_admin.core.entities import EntityDescriptor, FieldSpec, parse_bool
from soundcave_admin.core.errors import ApiError, MutationError, ValidationError
from soundcave_admin.core.notifications import Notifier
from soundcave_admin.core.upload import UploadField
from soundcave_admin.models.asset import LocalFile, UploadedAsset


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple)):
        return not any(str(x).strip() for x in raw)
    return False


def coerce_value(field: FieldSpec, raw: Any) -> Any:
    """Turn raw form input into the payload value for one non-upload field."""
    if _is_blank(raw):
        if field.required:
            raise ValidationError(f"{field.display} is required", field=field.name)
        return [] if field.kind == "list" else None

    kind = field.kind
    if kind == "int":
        try:
            return int(str(raw).strip())
        except ValueError:
            raise ValidationError(f"{field.display} must be a whole number", field=field.name)
    if kind == "float":
        try:
            return float(str(raw).strip())
        except ValueError:
            raise ValidationError(f"{field.display} must be a number", field=field.name)
    if kind == "bool":
        return parse_bool(raw, field=field.name)
    if kind == "list":
        items = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
        return [str(x).strip() for x in items if str(x).strip()]
    text = str(raw).strip()
    if kind == "choice" and field.choices and text not in field.choices:
        raise ValidationError(
            f"{field.display} must be one of: {', '.join(field.choices)}", field=field.name
        )
    if kind == "date":
        try:
            date.fromisoformat(text)
        except ValueError:
            try:
                # fromisoformat only takes a trailing Z from Python 3.11 on
                datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text)
            except ValueError:
                raise ValidationError(f"{field.display} must be a date (YYYY-MM-DD)", field=field.name)
    return text


class CrudForm:
    """One open add/edit modal.

    Create mode when record is None, edit mode otherwise (values prefilled and
    upload fields start from the record's stored URLs). A failed submit keeps
    the form open with its values so the user can fix and retry.
    """

    def __init__(
        self,
        client: SoundCaveClient,
        descriptor: EntityDescriptor,
        notifier: Notifier,
        *,
        record: Optional[dict] = None,
    ) -> None:
        self._client = client
        self.descriptor = descriptor
        self._notifier = notifier
        self.record = record
        self.values: Dict[str, Any] = {}
        self.uploads: Dict[str, UploadField] = {}
        for f in descriptor.fields:
            stored = record.get(f.name) if record else None
            if f.upload is not None:
                self.uploads[f.name] = UploadField(
                    client, f.upload, notifier, name=f.name, committed_url=stored or None
                )
                self.values[f.name] = ""  # URL typed by hand instead of uploading
            else:
                self.values[f.name] = stored
        self.is_open = True
        self.submitting = False
        self.last_error: Optional[Exception] = None
        self.saved: Optional[dict] = None

    @property
    def is_edit(self) -> bool:
        return self.record is not None

    @property
    def record_id(self) -> Any:
        return self.record.get("id") if self.record else None

    @property
    def uploading(self) -> bool:
        return any(u.uploading for u in self.uploads.values())

    @property
    def submit_enabled(self) -> bool:
        return self.is_open and not self.submitting and not self.uploading

    def set_value(self, name: str, raw: Any) -> None:
        self.descriptor.field(name)
        self.values[name] = raw

    def set_values(self, values: Mapping[str, Any]) -> None:
        for name in values:
            self.descriptor.field(name)
        self.values.update(values)

    def select_file(self, name: str, local_file: LocalFile) -> Optional[UploadedAsset]:
        upload = self.uploads.get(name)
        if upload is None:
            raise ValidationError(f"{self.descriptor.label} field '{name}' does not take files", field=name)
        return upload.select_file(local_file)

    def build_payload(self) -> Dict[str, Any]:
        """Validated create/update body. Raises ValidationError; makes no network call."""
        if self.uploading:
            raise ValidationError("Please wait until the upload has finished")
        payload: Dict[str, Any] = {}
        for f in self.descriptor.fields:
            if f.upload is not None:
                upload = self.uploads[f.name]
                manual = self.values.get(f.name)
                manual = manual.strip() if isinstance(manual, str) else None
                url = upload.remote_url or manual or upload.committed_url
                if not url and f.upload.required:
                    raise ValidationError(
                        f"Please upload a {f.upload.media} file or enter its URL", field=f.name
                    )
                payload[f.name] = url or None
            else:
                payload[f.name] = coerce_value(f, self.values.get(f.name))
        return payload

    async def submit(self) -> Optional[dict]:
        """POST (create) or PUT (edit). Returns the saved record, or None on failure."""
        if not self.is_open:
            return self.saved
        if self.submitting:
            self._notifier.warning("Already Saving", "Wait until the current save has finished.")
            return None
        try:
            payload = self.build_payload()
        except ValidationError as e:
            self.last_error = e
            self._notifier.error_from(e)
            return None

        label = self.descriptor.item_label
        self.submitting = True
        try:
            if self.is_edit:
                envelope = await self._client.put(
                    self.descriptor.item_path(self.record_id),
                    payload,
                    default_error=f"Failed to update {label.lower()}. Please try again.",
                )
            else:
                envelope = await self._client.post(
                    self.descriptor.path,
                    payload,
                    default_error=f"Failed to add {label.lower()}. Please try again.",
                )
        except ApiError as e:
            action = "Update" if self.is_edit else "Add"
            error = MutationError(e.message, title=f"Failed to {action} {label}")
            self.last_error = error
            self._notifier.error_from(error)
            return None
        finally:
            self.submitting = False

        saved = envelope.data if isinstance(envelope.data, dict) else dict(payload)
        if self.is_edit and "id" not in saved:
            saved["id"] = self.record_id
        self.saved = saved
        self.last_error = None
        self.is_open = False
        title = payload.get(self.descriptor.title_field) or label
        if self.is_edit:
            self._notifier.success(f"{label} Updated", f"{title} has been updated.")
        else:
            self._notifier.success(f"{label} Added", f"{title} has been added successfully.")
        return saved

    async def settle(self) -> None:
        for upload in self.uploads.values():
            await upload.settle()

    def close(self) -> None:
        """Cancel: drop picked files; nothing is sent."""
        for upload in self.uploads.values():
            upload.discard()
        self.is_open = False

    def to_dict(self) -> dict:
        return {
            "entity": self.descriptor.name,
            "mode": "edit" if self.is_edit else "create",
            "record_id": self.record_id,
            "values": self.values,
            "uploads": {name: u.to_dict() for name, u in self.uploads.items()},
            "is_open": self.is_open,
            "submitting": self.submitting,
            "uploading": self.uploading,
            "submit_enabled": self.submit_enabled,
            "error": getattr(self.last_error, "message", None),
            "saved": self.saved,
        }
