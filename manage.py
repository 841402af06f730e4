from classcraft import create_app
from flask.cli import with_appcontext
from flask_migrate import upgrade, migrate, init
from classcraft.seed import seed_data
import click

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Initializes migrations directory"""
    init()

@app.cli.command("db-migrate")
@with_appcontext
def db_migrate():
    """Creates a new migration"""
    migrate()

@app.cli.command("db-upgrade")
@with_appcontext
def db_upgrade():
    """Applies migrations"""
    upgrade()

@app.cli.command("seed-db")
@click.option("--reset", is_flag=True, help="Delete existing users, classes, students and attendance first.")
@click.option("--days", default=5, show_default=True, help="Days of demo attendance to write per class.")
@with_appcontext
def seed_db(reset, days):
    """Inserts demo users, classes, rosters and attendance"""
    written = seed_data(reset=reset, history_days=days)
    click.echo(f"Seed data inserted ({written} attendance sessions).")
