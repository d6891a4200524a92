"""Flask CLI commands for admin operations."""
import click

from storefront.auth import ADMIN, ROLES, ActorContext


def register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables (development; use `flask db upgrade` elsewhere)."""
        from storefront.extensions import db

        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("seed-demo")
    def seed_demo():
        """Seed demo categories and one product (idempotent)."""
        from storefront.importer.draft import Combination, Dimension, Material, ProductDraft, Variant
        from storefront.models.category import Category
        from storefront.extensions import db
        from storefront.services.product_service import insert_product, slug_exists

        demo_categories = [
            ("Living Room", "living-room", "Sofas, armchairs and coffee tables"),
            ("Bedroom", "bedroom", "Beds, mattresses and wardrobes"),
            ("Dining Room", "dining-room", "Dining tables and chairs"),
            ("Outdoor", "outdoor", "Furniture for balconies and gardens"),
        ]
        created = 0
        for order, (name, slug, description) in enumerate(demo_categories):
            if Category.query.filter_by(slug=slug).first():
                continue
            db.session.add(
                Category(name=name, slug=slug, description=description, display_order=order)
            )
            created += 1
        db.session.commit()
        click.echo(f"Seeded {created} demo categories.")

        if slug_exists("modern-sofa"):
            click.echo("Demo product already exists, skipping.")
            return
        draft = ProductDraft(
            name="Modern Sofa",
            slug="modern-sofa",
            category="Living Room",
            price=1299.99,
            description="A comfortable modern sofa for your living room.",
            features=["Durable construction", "Easy to clean"],
            delivery_time="2-3 weeks",
            variant=Variant(
                materials=[Material(name="Fabric")],
                dimensions=[Dimension(value="2600mm")],
                combinations=[Combination("Fabric", "2600mm", 1299.99, True)],
            ),
        )
        insert_product(draft)
        click.echo("Seeded demo product modern-sofa.")

    @app.cli.command("import-products")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    @click.option("--sheet", default=None, help="Sheet name; defaults to the template sheet")
    @click.option("--email", default="cli@localhost", help="Actor recorded in the activity log")
    @click.option("--role", default=ADMIN, type=click.Choice(sorted(ROLES)))
    @click.option("--dry-run", is_flag=True, help="Only convert and validate")
    def import_products_cmd(path, sheet, email, role, dry_run):
        """Import products from an .xlsx workbook using suggested column mapping."""
        from storefront.importer.fields import suggest_mapping
        from storefront.importer.spreadsheet import read_sheet, read_workbook
        from storefront.services.import_service import import_products, preview_import
        from storefront.errors import ValidationFailed

        with open(path, "rb") as fh:
            data = fh.read()
        parsed = read_sheet(data, sheet) if sheet else read_workbook(data)
        if not parsed.ok:
            for error in parsed.errors:
                click.echo(f"error: {error}", err=True)
            raise SystemExit(1)

        mapping = suggest_mapping(parsed.headers)
        try:
            results = preview_import(parsed.headers, parsed.rows, mapping)
        except ValidationFailed as e:
            for error in e.errors:
                click.echo(f"error: {error}", err=True)
            raise SystemExit(1)

        for result in results:
            if not result.valid:
                click.echo(f"row {result.index + 2}: " + "; ".join(result.errors))
        valid = [r.draft for r in results if r.valid]
        click.echo(f"{len(valid)} of {len(results)} rows valid (sheet {parsed.selected_sheet}).")
        if dry_run or not valid:
            return

        actor = ActorContext(user_id=f"cli:{email}", email=email, role=role)
        report = import_products(valid, actor)
        click.echo(report["message"])
        for row in report["results"]:
            if not row["success"]:
                click.echo(f"  {row['name']}: {row['message']}")

    @app.cli.command("export-template")
    @click.argument("path", type=click.Path(dir_okay=False, writable=True))
    def export_template(path):
        """Write the product import template workbook."""
        from storefront.importer.template import build_template
        from storefront.services.category_service import list_categories

        with open(path, "wb") as fh:
            fh.write(build_template(list_categories()))
        click.echo(f"Template written to {path}")

    @app.cli.command("stats")
    def stats():
        """Show catalog and order statistics."""
        from storefront.services.order_service import get_order_statistics
        from storefront.services.product_service import get_catalog_stats

        s = get_catalog_stats()
        click.echo(f"Total products: {sum(s.values())}")
        for category, count in sorted(s.items(), key=lambda kv: kv[0] or ""):
            click.echo(f"  {category or '(none)'}: {count}")

        o = get_order_statistics()
        click.echo(f"Total orders: {o['total_orders']}")
        click.echo(f"  open: {o['pending_orders']}")
        click.echo(f"  delivered: {o['completed_orders']}")
        click.echo(f"  revenue: {o['total_revenue']:.2f}")
