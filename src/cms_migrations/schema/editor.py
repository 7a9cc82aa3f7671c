"""Helpers for editing fields and templates from inside a migration unit."""

import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from ..core.exceptions import SchemaError
from ..utils.logging import LogContext, get_logger
from .backend import ContentSchema
from .models import FieldDef, TemplateDef

logger = get_logger(__name__, LogContext.SCHEMA)

FIELD_NAME_MAX_LENGTH = 128


def sanitize_field_name(name: str) -> str:
    """Reduce a string to a valid field name (ASCII letters, digits, underscore)."""
    return re.sub(r"[^A-Za-z0-9_]", "_", name.strip())[:FIELD_NAME_MAX_LENGTH]


class SchemaEditor:
    """Field and template editing on top of a ContentSchema backend.

    Every helper accepts either a name or the definition object for fields and
    templates, and raises SchemaError when a name does not resolve.
    """

    def __init__(self, schema: ContentSchema) -> None:
        self.schema = schema

    def get_field(self, field: FieldDef | str) -> FieldDef:
        resolved = self.schema.get_field(field) if isinstance(field, str) else field
        if not isinstance(resolved, FieldDef):
            raise SchemaError(f"Invalid field {field}")
        return resolved

    def get_template(self, template: TemplateDef | str) -> TemplateDef:
        resolved = (
            self.schema.get_template(template)
            if isinstance(template, str)
            else template
        )
        if not isinstance(resolved, TemplateDef):
            raise SchemaError(f"Invalid template {template}")
        return resolved

    def insert_into_template(
        self,
        template: TemplateDef | str,
        field: FieldDef | str,
        reference: FieldDef | str | None = None,
        after: bool = True,
    ) -> None:
        """Insert a field into a template, optionally next to a reference field.

        Without a reference, or when the reference is not in the template, the
        field is appended.
        """
        t = self.get_template(template)
        f = self.get_field(field)
        reference_name = reference.name if isinstance(reference, FieldDef) else reference

        if f.name in t.fields:
            t.fields.remove(f.name)

        if reference_name and reference_name in t.fields:
            position = t.fields.index(reference_name)
            t.fields.insert(position + 1 if after else position, f.name)
        else:
            t.fields.append(f.name)

        self.schema.save_template(t)

    def remove_from_template(
        self, template: TemplateDef | str, field: FieldDef | str
    ) -> bool:
        """Remove a field from a template, dropping its data on the template's pages.

        Returns:
            True if the field was part of the template.
        """
        t = self.get_template(template)
        f = self.get_field(field)
        if f.name not in t.fields:
            return False

        t.fields.remove(f.name)
        t.contexts.pop(f.name, None)
        self.schema.save_template(t)
        return True

    def remove_from_templates(
        self, template_names: str | Sequence[str], field: FieldDef | str
    ) -> list[str]:
        """Remove a field from several templates.

        ``template_names`` may be a comma separated string, e.g. ``"home,blog"``.

        Returns:
            Names of the templates the field was removed from.
        """
        if isinstance(template_names, str):
            template_names = [n.strip() for n in template_names.split(",") if n.strip()]

        return [
            name for name in template_names if self.remove_from_template(name, field)
        ]

    def label_field(self, field: FieldDef | str, label: str) -> None:
        f = self.get_field(field)
        f.label = label
        self.schema.save_field(f)

    def delete_field(self, field: FieldDef | str) -> None:
        """Remove a field from every template using it, then delete it."""
        f = self.get_field(field)
        for template in self.schema.templates_using_field(f):
            self.remove_from_template(template, f)
        self.schema.delete_field(f)
        logger.info(f"Deleted field '{f.name}'", field=f.name)

    def delete_field_if_unused(self, field: FieldDef | str) -> bool:
        """Delete a field only if no template uses it.

        Returns:
            True if the field was deleted.
        """
        f = self.get_field(field)
        templates = self.schema.templates_using_field(f)
        if templates:
            names = ", ".join(t.name for t in templates)
            logger.warning(
                f"Field '{f.name}' is still present in templates [{names}]",
                field=f.name,
            )
            return False

        self.schema.delete_field(f)
        logger.info(f"Deleted field '{f.name}'", field=f.name)
        return True

    def verify_candidate_field_names(
        self, candidates: Iterable[str], quiet: bool = True
    ) -> dict[str, str]:
        """Check that candidate names are valid and unused field names.

        A candidate is rejected if it is empty, changes when sanitized, is
        already a field or is a native field name.

        Returns:
            Rejected candidates mapped to their sanitized form.

        Raises:
            SchemaError: If ``quiet`` is False and any candidate was rejected.
        """
        rejects: dict[str, str] = {}
        for candidate in candidates:
            if not candidate:
                rejects[candidate] = candidate
                reason = "Candidate fieldname cannot be empty."
            else:
                sanitized = sanitize_field_name(candidate)
                reason = None
                if sanitized != candidate:
                    reason = f"Candidate fieldname '{candidate}' sanitized to '{sanitized}'"
                elif self.schema.get_field(candidate) is not None:
                    reason = f"Candidate fieldname '{candidate}' already in use."
                elif self.schema.is_native_field(candidate):
                    reason = (
                        f"Candidate fieldname '{candidate}' is a native (system) "
                        "field name."
                    )
                if reason:
                    rejects[candidate] = sanitized

            if reason and not quiet:
                logger.warning(reason, candidate=candidate)

        if rejects and not quiet:
            raise SchemaError(
                "Error in candidate fieldnames, please correct.",
                context={"rejects": rejects},
            )
        return rejects

    def edit_in_template_context(
        self,
        template: TemplateDef | str,
        field: FieldDef | str,
        callback: Callable[[dict[str, Any], TemplateDef], None],
    ) -> None:
        """Edit the settings a field has when used in one template.

        ``callback`` receives the mutable override dict and the template.
        """
        t = self.get_template(template)
        f = self.get_field(field)
        if f.name not in t.fields:
            raise SchemaError(f"Field '{f.name}' is not part of template '{t.name}'")

        context = dict(t.contexts.get(f.name, {}))
        callback(context, t)
        t.contexts[f.name] = context
        self.schema.save_template(t)

    def _checked_new_name(self, new_name: str) -> str:
        if not isinstance(new_name, str):
            raise SchemaError("New name must be a string")
        new_name = sanitize_field_name(new_name)
        if not new_name:
            raise SchemaError("New name is not a valid field name")
        if self.schema.get_field(new_name) is not None:
            raise SchemaError(f"A field called {new_name} already exists")
        return new_name

    def rename_field(self, field: FieldDef | str, new_name: str) -> FieldDef:
        new_name = self._checked_new_name(new_name)
        f = self.get_field(field)
        old_name = f.name
        renamed = self.schema.rename_field(f, new_name)
        logger.info(f"Renamed '{old_name}' to '{new_name}'.", field=new_name)
        return renamed

    def rename_fields(self, conversions: Mapping[str, str]) -> None:
        """Rename several fields, e.g. ``{"text_2": "lead_text"}``."""
        for old_name, new_name in conversions.items():
            self.rename_field(old_name, new_name)

    def clone_field_and_rename(
        self, source_field: FieldDef | str, new_name: str
    ) -> FieldDef:
        new_name = self._checked_new_name(new_name)
        source = self.get_field(source_field)
        clone = self.schema.clone_field(source, new_name)
        logger.info(
            f"Successfully cloned field '{source.name}' to '{clone.name}'",
            field=clone.name,
        )
        return clone

    def copy_field_in_pages_using_templates(
        self,
        templates: Sequence[str],
        source: FieldDef | str,
        dest: FieldDef | str,
        quiet: bool = True,
    ) -> int:
        """Copy the source field's value to the dest field on every page using the templates.

        Returns:
            Number of pages updated.
        """
        source_name = self.get_field(source).name
        dest_name = self.get_field(dest).name

        count = 0
        for page in self.schema.find_pages(templates):
            page.data[dest_name] = page.data.get(source_name)
            self.schema.save_page(page, quiet=quiet)
            count += 1

        logger.info(
            f"Copied '{source_name}' to '{dest_name}' in {count} pages",
            templates=list(templates),
        )
        return count

    def _pages_match(self, template_name: str, source_name: str, dest_name: str) -> bool:
        return all(
            page.data.get(source_name) == page.data.get(dest_name)
            for page in self.schema.find_pages([template_name])
        )

    def replace_fields_in_templates(
        self,
        templates: Sequence[str],
        replacements: Mapping[str, str],
        remove_source_from_template: bool = False,
        clone_missing_replacements: bool = True,
    ) -> None:
        """Replace source fields with replacement fields in the given templates.

        For each template the replacement is inserted right after its source,
        inherits the source's template context and receives a copy of the page
        data. With ``remove_source_from_template`` the source is then removed,
        but only from templates where every page copied correctly.

        Example::

            editor.replace_fields_in_templates(
                ["home", "blog"], {"t_area_1": "lead", "t_area_2": "body"}
            )
        """
        if not templates:
            logger.info("No templates specified, nothing to replace")
            return
        if not replacements:
            logger.info("No replacements specified, nothing to replace")
            return

        pairs: list[tuple[str, str]] = []
        for source_name, replacement_name in replacements.items():
            if not replacement_name:
                raise SchemaError("Replacement field is empty!")
            if not source_name:
                raise SchemaError("Source field is empty!")

            source_name = sanitize_field_name(source_name)
            replacement_name = sanitize_field_name(replacement_name)
            if source_name == replacement_name:
                raise SchemaError("Source and replacement fields cannot match!")
            if self.schema.get_field(source_name) is None:
                raise SchemaError(f"Source field '{source_name}' does not exist!")

            if clone_missing_replacements and self.schema.get_field(replacement_name) is None:
                self.clone_field_and_rename(source_name, replacement_name)
            pairs.append((source_name, replacement_name))

        for source_name, replacement_name in pairs:
            if self.schema.get_field(replacement_name) is None:
                logger.warning(
                    f"Skipping {source_name} => {replacement_name} replacement because "
                    f"field '{replacement_name}' does not exist."
                )
                continue

            for template_name in templates:
                try:
                    self.insert_into_template(template_name, replacement_name, source_name)
                except SchemaError:
                    logger.warning(
                        f"Could not insert '{replacement_name}' into template "
                        f"'{template_name}' after field '{source_name}', skipping "
                        "context and data copy"
                    )
                    continue

                template = self.get_template(template_name)
                source_context = template.contexts.get(source_name)
                if source_context:
                    template.contexts[replacement_name] = dict(source_context)
                    self.schema.save_template(template)
                    logger.info(
                        f"Cloned '{source_name}' to '{replacement_name}' context "
                        f"for template '{template_name}'."
                    )

                self.copy_field_in_pages_using_templates(
                    [template_name], source_name, replacement_name
                )

                if not remove_source_from_template:
                    continue

                if self._pages_match(template_name, source_name, replacement_name):
                    logger.info(
                        f"Removing '{source_name}' from template '{template_name}' "
                        "as page data copied ok"
                    )
                    self.remove_from_template(template_name, source_name)
                else:
                    logger.warning(
                        f"Could not remove '{source_name}' from template "
                        f"'{template_name}' because some of the page data did not "
                        "copy correctly."
                    )
