"""
Example 02: Type Map

This example shows how table names, column names, value hooks and access
control can be overridden per record type, and how the resulting names
are resolved without touching a database.
"""

from datetime import date

from row_source import Conventions, NormalizedRecord, RecordTransformer, SourceSettings

settings = SourceSettings(
    access_column="owner_id",
    type_map={
        "person": {
            "table_name": "people",
            "attributes": {
                "fullName": {"column": "display_name"},
                "birthday": {
                    "serialize": lambda d: d.isoformat(),
                    "deserialize": date.fromisoformat,
                },
            },
        },
        "country": {"access_control": {"enabled": False}},
        "category": {"timestamps": {"created_at": "inserted_at"}},
    },
)


def main():
    conventions = Conventions(settings)

    print("=== Table names ===\n")
    for record_type in ("person", "country", "category", "box", "child"):
        print(f"   {record_type:<9} -> {conventions.table_name(record_type)}")
    print()

    print("=== Column names ===\n")
    print(f"   person.fullName  -> {conventions.column_name('person', 'fullName')}")
    print(f"   person.firstName -> {conventions.column_name('person', 'firstName')}\n")

    print("=== Access control ===\n")
    for record_type in ("person", "country"):
        enabled = conventions.access_control_enabled(record_type)
        print(f"   {record_type:<8} enabled={enabled} column={conventions.access_control_column(record_type)}")
    print()

    print("=== Round trip ===\n")
    transformer = RecordTransformer(conventions)
    record = NormalizedRecord(
        type="person",
        id=7,
        attributes={"fullName": "Ada Lovelace", "birthday": date(1815, 12, 10)},
    )
    row = transformer.serialize(record)
    print(f"   row:    {row}")
    print(f"   record: {dict(transformer.deserialize('person', row).attributes)}")


if __name__ == "__main__":
    main()
