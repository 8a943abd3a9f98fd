import click

from shelf.errors import ValidationError
from shelf.models.user import User
from shelf.services import category_service, seed_service, user_service


def _get_user(username: str) -> User:
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise click.ClickException(f"No user named {username!r}.")
    return user


def register_commands(app):
    @app.cli.command("seed")
    def seed():
        """Seed the default admin user and its category tree."""
        result = seed_service.seed_all()
        click.echo(
            f"Created {result['categories']} categories"
            f"{' and the admin user' if result['user_created'] else ''}."
        )

    @app.cli.command("seed-categories")
    @click.argument("username")
    def seed_categories(username):
        """Seed the default category tree for USERNAME."""
        created = seed_service.seed_categories(_get_user(username).id)
        click.echo(f"Created {len(created)} categories.")

    @app.cli.command("create-user")
    @click.argument("username")
    @click.argument("email")
    @click.option("--first-name", default="")
    @click.option("--last-name", default="")
    @click.password_option()
    def create_user(username, email, first_name, last_name, password):
        """Create a user who can log in."""
        try:
            user = user_service.create_user(
                username,
                email,
                password,
                first_name=first_name,
                last_name=last_name,
            )
        except ValidationError as e:
            raise click.ClickException(e.message) from e
        click.echo(f"Created user {user.username} (id={user.id}).")

    @app.cli.command("category-tree")
    @click.argument("username")
    def category_tree(username):
        """Print USERNAME's categories as an indented outline."""
        click.echo(category_service.render_tree_text(_get_user(username).id))
