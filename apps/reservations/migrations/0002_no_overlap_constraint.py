"""PostgreSQL exclusion constraint against overlapping reservations.

Other backends rely on the locked check in the reservation service.
"""

from django.db import migrations

CREATE_STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist",
    """
    ALTER TABLE reservations_reservation
        ADD CONSTRAINT reservation_no_overlap
        EXCLUDE USING gist (
            property_id WITH =,
            daterange(check_in, check_out, '[)') WITH &&
        )
        WHERE (status <> 'cancelled')
    """,
]

DROP_STATEMENTS = [
    "ALTER TABLE reservations_reservation DROP CONSTRAINT IF EXISTS reservation_no_overlap",
]


def add_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    for statement in CREATE_STATEMENTS:
        schema_editor.execute(statement)


def drop_exclusion_constraint(apps, schema_editor):
    if schema_editor.connection.vendor != "postgresql":
        return
    for statement in DROP_STATEMENTS:
        schema_editor.execute(statement)


class Migration(migrations.Migration):

    dependencies = [
        ("reservations", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(add_exclusion_constraint, drop_exclusion_constraint),
    ]
