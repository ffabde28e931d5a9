"""
Log message templates used by the CRUD service.

Templates are plain format strings with positional "{}" placeholders, checked
against the number of arguments each one receives when they are built. They are
supplied once at startup (usually from Settings) and injected into the service,
instead of being read from the environment on every log call.
"""

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from .settings import TEMPLATE_ARITY, Settings, check_template


class MessageTemplates(BaseModel):
    model_config = ConfigDict(frozen=True)

    not_found: str = "{} with id {} could not be found"
    create_failed: str = "{} could not be created in {}"
    update_failed: str = "{} with id {} could not be updated in {}"
    delete_failed: str = "{} with id {} could not be deleted"
    retrieval_error: str = "There was an error retrieving the records"

    @field_validator("*")
    @classmethod
    def placeholders_match_arguments(cls, v: str, info: ValidationInfo) -> str:
        return check_template(v, TEMPLATE_ARITY[info.field_name])

    @classmethod
    def from_settings(cls, settings: Settings) -> "MessageTemplates":
        return cls(
            not_found=settings.LOG_NOT_FOUND_MESSAGE,
            create_failed=settings.LOG_CREATE_FAILED_MESSAGE,
            update_failed=settings.LOG_UPDATE_FAILED_MESSAGE,
            delete_failed=settings.LOG_DELETE_FAILED_MESSAGE,
            retrieval_error=settings.LOG_RETRIEVAL_ERROR_MESSAGE,
        )

    def render(self, key: str, *args) -> str:
        """
        Substitute `args` into the template named `key`.

        Surplus arguments are ignored (str.format semantics), so a deployment may
        shorten a template without breaking the service.

        Raises:
            KeyError: if `key` is not a known template name.
        """
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key).format(*args)
