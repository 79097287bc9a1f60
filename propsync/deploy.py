#!/usr/bin/env python3
"""
Deployment of fetched translation files into the project tree.

The translation service delivers one blob per (language, module, file).
Files are laid out as:

    <target>/<language>/<name>              root project files
    <target>/<language>/<module>/<name>     files belonging to a module

Deployment drops files of modules the build does not depend on, cleans
folders left over from earlier runs, converts each file with its format
handler and writes it. A translation status file summarises progress per
language.
"""

import logging
import re
import shutil
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable, Optional

from .config import DEFAULT_COMMENT, FileSet
from .format_handlers import FormatRegistry
from .properties import PropertiesTable, SerializeOptions, serialize

logger = logging.getLogger(__name__)

_MESSAGES_PATTERN = re.compile(r'messages_.*\.properties')


def language_tag(code: str) -> str:
    """Language tag for a service language code (``pt-BR``)."""
    return code.strip()


def file_tag(code: str) -> str:
    """File name tag for a service language code (``pt_BR``)."""
    return language_tag(code).replace('-', '_')


@dataclass(frozen=True)
class TranslationFile:
    """One translation file identified by language, module and name."""
    language: str
    module_id: Optional[str]
    name: str

    @classmethod
    def from_archive_path(cls, path: str) -> "TranslationFile":
        """
        Build from an archive entry path such as ``de/core/messages_de.properties``.

        The first directory is the language, an optional second directory is
        the module. ``messages_*.properties`` files are renamed to carry the
        file tag of the language.
        """
        parts = path.replace('\\', '/').strip('/').split('/', 2)
        if len(parts) < 2 or not all(parts):
            raise ValueError(f"Archive path has no language folder: {path}")

        language = parts[0]
        if len(parts) == 2:
            module_id, name = None, parts[1]
        else:
            module_id, name = parts[1], parts[2]

        if _MESSAGES_PATTERN.fullmatch(name):
            name = f"messages_{file_tag(language)}.properties"
        return cls(language_tag(language), module_id, name)

    @property
    def relative_path(self) -> str:
        """Path relative to the target folder."""
        if self.module_id:
            return f"{self.language}/{self.module_id}/{self.name}"
        return f"{self.language}/{self.name}"


@dataclass
class LanguageStatus:
    """Translation progress of one language as reported by the service."""
    code: str
    name: str = ""
    phrases: str = ""
    translated: str = ""
    approved: str = ""
    words: str = ""
    words_translated: str = ""
    words_approved: str = ""
    translated_progress: str = ""
    approved_progress: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LanguageStatus":
        """Create from a mapping, ignoring unknown keys and stringifying values."""
        known = {f.name for f in fields(cls)}
        values = {
            k: " ".join(str(v).split()) for k, v in data.items()
            if k in known and v is not None
        }
        values.setdefault("code", "")
        return cls(**values)


def read_archive_dir(source: Path) -> dict[TranslationFile, bytes]:
    """
    Read an extracted translation archive.

    Args:
        source: Folder containing ``<language>/[<module>/]<file>`` entries

    Returns:
        Map of TranslationFile -> raw content
    """
    translations = {}
    for path in sorted(source.rglob('*')):
        if not path.is_file():
            continue
        relative = path.relative_to(source).as_posix()
        if any(part.startswith('.') for part in relative.split('/')):
            continue
        logger.debug("Processing %s", relative)
        translations[TranslationFile.from_archive_path(relative)] = path.read_bytes()
    return translations


def filter_translations(
    translations: dict[TranslationFile, bytes],
    module_ids: Optional[Iterable[str]],
) -> dict[TranslationFile, bytes]:
    """
    Keep root project files and files of modules the build depends on.

    Args:
        translations: All delivered files
        module_ids: Module ids of the dependencies, or None to keep everything

    Returns:
        Filtered map
    """
    if module_ids is None:
        return dict(translations)

    wanted = set(module_ids)
    used = {}
    for translation_file, data in translations.items():
        if translation_file.module_id is None:
            logger.debug("%s is a root project file", translation_file.name)
        elif translation_file.module_id not in wanted:
            logger.debug("%s is not a dependency", translation_file.module_id)
            continue
        else:
            logger.debug("%s is a dependency", translation_file.module_id)
        used[translation_file] = data
    return used


def _delete_folder(folder: Path, delete_root: bool) -> None:
    """Delete a folder's content; dot entries survive unless the root goes too."""
    for entry in folder.iterdir():
        if entry.name.startswith('.') and not delete_root:
            continue
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        logger.debug("Deleted %s", entry)
    if delete_root:
        folder.rmdir()
        logger.debug("Deleted %s", folder)


def clean_folders(root: Path, translation_files: Iterable[TranslationFile]) -> None:
    """
    Remove stale translation folders before writing.

    Language folders without translations are deleted. Inside the others,
    module folders without translations are deleted and the remaining
    module folders are emptied. Entries starting with a dot are left alone.
    """
    if not root.exists():
        return

    translation_files = list(translation_files)
    languages = {f.language for f in translation_files}
    module_ids = {f.module_id for f in translation_files if f.module_id}

    for language_folder in sorted(root.iterdir()):
        if language_folder.name.startswith('.') or not language_folder.is_dir():
            continue
        if language_folder.name not in languages:
            _delete_folder(language_folder, True)
            continue
        for module_folder in sorted(language_folder.iterdir()):
            if module_folder.name.startswith('.') or not module_folder.is_dir():
                continue
            _delete_folder(module_folder, module_folder.name not in module_ids)


def write_translations(
    root: Path,
    translations: dict[TranslationFile, bytes],
    file_set: FileSet,
) -> list[Path]:
    """
    Convert and write translation files below root.

    Returns:
        Paths written, in a stable order
    """
    written = []
    for translation_file in sorted(translations, key=lambda f: f.relative_path):
        file_type = file_set.resolve_type(translation_file.name)
        handler = FormatRegistry.get_handler(file_type)
        content = handler.convert(translations[translation_file], file_set)

        target = root / translation_file.relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Importing %s/%s/%s",
            translation_file.language, translation_file.module_id, translation_file.name,
        )
        target.write_bytes(content)
        written.append(target)
    return written


def build_status_table(statuses: Iterable[LanguageStatus]) -> PropertiesTable:
    """Build the status table keyed by ``<language tag>.<field>``."""
    table = PropertiesTable()
    for status in statuses:
        if not status.code.strip():
            continue
        tag = language_tag(status.code)
        table[f"{tag}.name"] = status.name
        table[f"{tag}.phrases"] = status.phrases
        table[f"{tag}.phrases.translated"] = status.translated
        table[f"{tag}.phrases.approved"] = status.approved
        table[f"{tag}.words"] = status.words
        table[f"{tag}.words.translated"] = status.words_translated
        table[f"{tag}.words.approved"] = status.words_approved
        table[f"{tag}.progress.translated"] = status.translated_progress
        table[f"{tag}.progress.approved"] = status.approved_progress
        logger.debug(
            "Translation status for %s (%s): Phrases %s, Translated %s, Approved %s",
            status.name, status.code, status.phrases, status.translated, status.approved,
        )
    return table


def write_status(
    path: Path,
    statuses: Iterable[LanguageStatus],
    comment: str = DEFAULT_COMMENT,
) -> Path:
    """Write the translation status properties file."""
    table = build_status_table(statuses)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize(table, SerializeOptions(header_comment=comment)))
    logger.info("Wrote translation status for %d entries to %s", len(table), path)
    return path
