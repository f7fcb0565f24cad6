"""Project transfer script: export, report or import a project against MongoDB.

Usage:
    # Export a goal and its tasks to JSON
    python scripts/transfer.py export --goal-id <goal-id> --output project.json

    # Timesheet report as CSV
    python scripts/transfer.py report --goal-id <goal-id> --output timesheet.csv

    # Import (replaces the goal and its tasks)
    python scripts/transfer.py import --input project.json
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import settings
from app.database import Database
from app.exceptions import ImportValidationError, NotFoundError
from app.services.entity_store import EntityStore
from app.services.persistence import StatePersistence
from app.services.transfer_service import TransferService


class ProjectTransfer:
    """Runs one transfer command against the persisted state."""

    def __init__(self, mongodb_url: str, db_name: str):
        """Initialize transfer.

        Args:
            mongodb_url: MongoDB connection URL
            db_name: Database holding the state collection
        """
        self.mongodb_url = mongodb_url
        self.db_name = db_name
        self.database = Database()
        self.persistence = None
        self.store = None

    async def connect(self):
        """Connect to MongoDB and load the store."""
        db = await self.database.connect(self.mongodb_url, self.db_name)
        self.persistence = StatePersistence(db)
        goals, tasks = await self.persistence.load()
        self.store = EntityStore(goals, tasks, on_change=self.persistence.schedule)
        print(f"Loaded {len(goals)} goals and {len(tasks)} tasks from {self.db_name}")

    async def close(self):
        """Flush pending writes and close the connection."""
        if self.persistence:
            await self.persistence.flush()
        await self.database.disconnect()

    def export(self, goal_id: str, output: Path):
        document = TransferService(self.store).export_project(goal_id)
        output.write_text(document.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        print(f"Exported {document.goal.title} with {len(document.tasks)} tasks to {output}")

    def report(self, goal_id: str, output: Path):
        service = TransferService(self.store)
        output.write_text(service.build_report(goal_id), encoding="utf-8")
        print(f"Wrote timesheet for {goal_id} to {output}")

    def import_(self, source: Path):
        result = TransferService(self.store).import_project(source.read_text(encoding="utf-8"))
        print(
            f"Imported {result.goal_title}: {result.imported_tasks} tasks "
            f"({result.replaced_tasks} replaced)"
        )


async def run(args) -> int:
    transfer = ProjectTransfer(args.mongodb_url, args.db_name)
    await transfer.connect()
    try:
        if args.command == "export":
            transfer.export(args.goal_id, args.output)
        elif args.command == "report":
            transfer.report(args.goal_id, args.output)
        else:
            transfer.import_(args.input)
    except NotFoundError as e:
        print(f"Error: {e}")
        return 1
    except ImportValidationError as e:
        print(f"Invalid document ({e.field}): {e}")
        return 1
    finally:
        await transfer.close()
    return 0


def main():
    parser = argparse.ArgumentParser(description="Export, report or import a project")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url, help="MongoDB connection URL")
    parser.add_argument("--db-name", default=settings.mongodb_db_name, help="Database name")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="Export a goal and its tasks as JSON")
    export_parser.add_argument("--goal-id", required=True)
    export_parser.add_argument("--output", type=Path, required=True)

    report_parser = subparsers.add_parser("report", help="Write the timesheet CSV for a goal")
    report_parser.add_argument("--goal-id", required=True)
    report_parser.add_argument("--output", type=Path, required=True)

    import_parser = subparsers.add_parser("import", help="Import an exported project")
    import_parser.add_argument("--input", type=Path, required=True)

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
