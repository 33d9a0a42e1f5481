# File: routegen/templates.py
"""
RouteGen - Template Sets
==========================
A template set tells the materializer what to write for each route:

    - one ``RouteTemplate`` per operation (fixed output file name + body);
    - an optional route index template, rendered once at the group root;
    - static files copied verbatim to the output root.

Two sources exist:

1. ``default_template_set()`` — built-in Next.js app-router pages
   (``page.tsx`` per route directory).
2. ``load_template_dir(path)`` — a user directory. Top-level files named
   ``<operation>.<output name>`` (``list.page.tsx``, ``update.page.vue``)
   become operation templates, ``index.<output name>`` becomes the route
   index template, and every other file (nested ones included) is a static
   file kept at its relative path.

Template bodies contain ``templateXxx`` tokens that the materializer
replaces per route; see ``routegen.materializer`` for the token list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from routegen.errors import ConfigurationError
from routegen.models import Operation

logger: logging.Logger = logging.getLogger("routegen.templates")

INDEX_TEMPLATE_PREFIX: str = "index"

ROUTE_LIST_START: str = "@routegen routeList start"
ROUTE_LIST_STOP: str = "@routegen routeList stop"


@dataclass(frozen=True, slots=True)
class RouteTemplate:
    """A template body and the file name it is written to."""

    file_name: str
    content: str


@dataclass(frozen=True, slots=True)
class TemplateSet:
    """
    Everything the materializer needs to turn a route tree into files.

    ``operations`` may omit operations; routes without a template are not
    materialized.
    """

    name: str
    operations: Mapping[Operation, RouteTemplate]
    index: Optional[RouteTemplate] = None
    static_files: Mapping[str, str] = field(default_factory=dict)
    source_dir: Optional[str] = None

    def template_for(self, operation: Operation) -> Optional[RouteTemplate]:
        return self.operations.get(operation)

    @property
    def missing_operations(self) -> List[Operation]:
        return [op for op in Operation if op not in self.operations]

    def __repr__(self) -> str:
        ops: str = ", ".join(op.value for op in self.operations)
        return (
            f"<TemplateSet {self.name} ops=[{ops}] "
            f"index={'yes' if self.index else 'no'} "
            f"static={len(self.static_files)}>"
        )


# ---------------------------------------------------------------------------
# Built-in Next.js template set
# ---------------------------------------------------------------------------

_PAGE_FILE: str = "page.tsx"

_LIST_PAGE: str = """\
import Link from "next/link";

// templateRoutePath: list TemplateModel records
export default async function TemplateModelListPage({
  params,
}: {
  params: Record<string, string>;
}) {
  return (
    <div className="flex flex-col gap-4">
      <header>
        <Link href={`templateParentRedirect`}>Back</Link>
        <h1 className="text-2xl font-bold">TemplateModel</h1>
      </header>
      <Link href={`templateRedirect/create`}>Create TemplateModel</Link>
      <table>
        <thead>
          <tr>
            {/* columns: templateFields */}
          </tr>
        </thead>
        <tbody></tbody>
      </table>
    </div>
  );
}
"""

_CREATE_PAGE: str = """\
import Link from "next/link";
import { redirect } from "next/navigation";

// templateRoutePath: create a TemplateModel
export default async function CreateTemplateModelPage({
  params,
}: {
  params: Record<string, string>;
}) {
  async function createTemplateModel(formData: FormData) {
    "use server";
    // fields: templateFields
    redirect(`templateParentRedirect`);
  }

  return (
    <div className="flex flex-col gap-4">
      <Link href={`templateParentRedirect`}>Cancel</Link>
      <h1 className="text-2xl font-bold">Create TemplateModel</h1>
      <form action={createTemplateModel}>
        <button type="submit">Create</button>
      </form>
    </div>
  );
}
"""

_READ_PAGE: str = """\
import Link from "next/link";

// templateRoutePath: show one TemplateModel (templateIdentifiers)
export default async function ShowTemplateModelPage({
  params,
}: {
  params: Record<string, string>; // templateSlugs
}) {
  return (
    <div className="flex flex-col gap-4">
      <Link href={`templateParentRedirect`}>Back to TemplateModel list</Link>
      <h1 className="text-2xl font-bold">TemplateModel</h1>
      <dl>{/* fields: templateFields */}</dl>
      <Link href={`templateRedirect/edit`}>Edit</Link>
      <Link href={`templateRedirect/delete`}>Delete</Link>
    </div>
  );
}
"""

_UPDATE_PAGE: str = """\
import Link from "next/link";
import { redirect } from "next/navigation";

// templateRoutePath: edit one TemplateModel (templateIdentifiers)
export default async function EditTemplateModelPage({
  params,
}: {
  params: Record<string, string>; // templateSlugs
}) {
  async function editTemplateModel(formData: FormData) {
    "use server";
    // fields: templateFields
    redirect(`templateRecordRedirect`);
  }

  return (
    <div className="flex flex-col gap-4">
      <Link href={`templateRecordRedirect`}>Cancel</Link>
      <h1 className="text-2xl font-bold">Edit TemplateModel</h1>
      <form action={editTemplateModel}>
        <button type="submit">Save</button>
      </form>
    </div>
  );
}
"""

_DELETE_PAGE: str = """\
import Link from "next/link";
import { redirect } from "next/navigation";

// templateRoutePath: delete one TemplateModel (templateIdentifiers)
export default async function DeleteTemplateModelPage({
  params,
}: {
  params: Record<string, string>; // templateSlugs
}) {
  async function deleteTemplateModel() {
    "use server";
    redirect(`templateParentRedirect`);
  }

  return (
    <div className="flex flex-col gap-4">
      <Link href={`templateRecordRedirect`}>Cancel</Link>
      <h1 className="text-2xl font-bold">Delete TemplateModel?</h1>
      <form action={deleteTemplateModel}>
        <button type="submit">Delete</button>
      </form>
    </div>
  );
}
"""

_INDEX_PAGE: str = """\
import Link from "next/link";

// Route index for group 'templateGroup'
export default async function Home() {
  return (
    <div className="flex flex-col gap-2">
      <h1 className="text-2xl font-bold">Defined Routes</h1>
      <ul>
        {/* @routegen routeList start */}
        <li>templateRoutePath - templateOperation TemplateModel</li>
        {/* @routegen routeList stop */}
      </ul>
    </div>
  );
}
"""


def default_template_set() -> TemplateSet:
    """The built-in Next.js app-router template set."""
    return TemplateSet(
        name="nextjs",
        operations={
            Operation.LIST: RouteTemplate(_PAGE_FILE, _LIST_PAGE),
            Operation.CREATE: RouteTemplate(_PAGE_FILE, _CREATE_PAGE),
            Operation.READ: RouteTemplate(_PAGE_FILE, _READ_PAGE),
            Operation.UPDATE: RouteTemplate(_PAGE_FILE, _UPDATE_PAGE),
            Operation.DELETE: RouteTemplate(_PAGE_FILE, _DELETE_PAGE),
        },
        index=RouteTemplate(_PAGE_FILE, _INDEX_PAGE),
    )


# ---------------------------------------------------------------------------
# Directory loader
# ---------------------------------------------------------------------------

_OPERATIONS_BY_PREFIX: Dict[str, Operation] = {op.value: op for op in Operation}


def load_template_dir(directory: str | Path) -> TemplateSet:
    """
    Build a ``TemplateSet`` from a template directory.

    Raises:
        ConfigurationError: the directory does not exist, a template file
            is not UTF-8 text, or an operation has two templates.
    """
    root: Path = Path(directory)
    if not root.is_dir():
        raise ConfigurationError(f"Template directory not found: {root}")

    operations: Dict[Operation, RouteTemplate] = {}
    index: Optional[RouteTemplate] = None
    static_files: Dict[str, str] = {}

    for file_path in sorted(p for p in root.rglob("*") if p.is_file()):
        rel: str = file_path.relative_to(root).as_posix()
        content: str = _read_text(file_path)

        prefix, _, output_name = file_path.name.partition(".")
        is_top_level: bool = file_path.parent == root

        if is_top_level and output_name and prefix in _OPERATIONS_BY_PREFIX:
            op: Operation = _OPERATIONS_BY_PREFIX[prefix]
            if op in operations:
                raise ConfigurationError(
                    f"Two templates for operation '{op.value}' in {root}: "
                    f"'{operations[op].file_name}' and '{output_name}'."
                )
            operations[op] = RouteTemplate(output_name, content)
            logger.debug("Template %s → %s (%s).", rel, output_name, op.value)
        elif is_top_level and output_name and prefix == INDEX_TEMPLATE_PREFIX:
            index = RouteTemplate(output_name, content)
            logger.debug("Route index template %s → %s.", rel, output_name)
        else:
            static_files[rel] = content
            logger.debug("Static file %s.", rel)

    template_set: TemplateSet = TemplateSet(
        name=root.name,
        operations=operations,
        index=index,
        static_files=static_files,
        source_dir=str(root),
    )

    if template_set.missing_operations:
        logger.warning(
            "Template directory %s has no template for: %s. Those routes "
            "produce no files.",
            root,
            ", ".join(op.value for op in template_set.missing_operations),
        )

    logger.info("Loaded %r from %s.", template_set, root)
    return template_set


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigurationError(
            f"Template file {path} is not UTF-8 text: {exc}"
        ) from exc


__all__: List[str] = [
    "INDEX_TEMPLATE_PREFIX",
    "ROUTE_LIST_START",
    "ROUTE_LIST_STOP",
    "RouteTemplate",
    "TemplateSet",
    "default_template_set",
    "load_template_dir",
]

logger.debug("routegen.templates loaded.")
