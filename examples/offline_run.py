#!/usr/bin/env python3
"""
Offline inkwell run

Builds a throwaway workspace with a small journal export, runs the pipeline
twice against it without a browser, and shows what each run did. The second
run publishes nothing and lists the published entries that still need moving
out of the draft journal.
"""

import asyncio
import json
import sys
import tempfile
from pathlib import Path

# Add src to path so we can import inkwell
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from inkwell import Pipeline, Workspace  # noqa: E402

CONFIG = """name: "offline-demo"
journals:
  draft: "Blog Public"
  published: "Blog Live"
"""


def create_sample_export(directory: Path) -> Path:
    """Write a two-entry export in the journaling app's JSON format."""
    entries = [
        {
            "uuid": "A1B2C3",
            "title": "Soldering a keyboard",
            "creationDate": "2024-01-15T10:30:00Z",
            "modifiedDate": "2024-01-16T08:00:00Z",
            "text": "Notes from the weekend build.",
            "tags": ["Hardware"],
            "journal": "Blog Public",
        },
        {
            "uuid": "D4E5F6",
            "title": "Why I like small tools",
            "creationDate": "2024-02-01T09:00:00Z",
            "text": "A short rant.",
            "tags": ["software"],
            "journal": "Blog Public",
        },
    ]
    path = directory / "export.json"
    path.write_text(json.dumps({"metadata": {"version": "1.0"}, "entries": entries}))
    return path


async def main():
    with tempfile.TemporaryDirectory() as temp:
        root = Path(temp)
        (root / "inkwell.yml").write_text(CONFIG)
        archive = create_sample_export(root)

        for attempt in (1, 2):
            print(f"\nRun {attempt}")
            print("=" * 50)
            pipeline = Pipeline.from_workspace(Workspace.find(root))
            result = await pipeline.run(archive=archive)
            for outcome in result.outcomes:
                where = outcome.output_location or "-"
                print(f"  {outcome.status:<10} {outcome.title}  {where}")
            if result.report_path:
                print(f"  migration report: {result.report_path}")

        print("\nPosts written:")
        for post in sorted((root / "posts").rglob("*.md")):
            print(f"  {post.relative_to(root)}")


if __name__ == "__main__":
    asyncio.run(main())
