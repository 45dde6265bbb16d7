#!/usr/bin/env python3

import sys
import json
from pathlib import Path

from errors import SpendwatchError, ValidationError
from logger import get_logger
from money import format_money

logger = get_logger()


def _log_validation_errors(e: ValidationError) -> None:
    for field, messages in e.errors.items():
        for message in messages:
            logger.error(f"  {field} {message}")


def _log_analysis(analysis) -> None:
    logger.info(
        f"Spent: {format_money(analysis.total_expenses)} of "
        f"{format_money(analysis.budget)} ({analysis.percentage}%) [{analysis.status}]"
    )
    if analysis.is_over_budget:
        logger.info(f"Over budget by: {format_money(analysis.over_budget_amount)}")
    else:
        logger.info(f"Remaining: {format_money(analysis.remaining_budget)}")


def cmd_list(args, services):
    """List all categories with their budget status."""
    results = services.budgets.analyze_all()

    if not results:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category, analysis in results:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {category.name}")
        if category.description:
            logger.info(f"Description: {category.description}")
        _log_analysis(analysis)
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(results)}")


def cmd_show(args, services):
    """Show one category, its budget analysis and its expenses."""
    try:
        category = services.categories.get(args.category_id)
        analysis = services.budgets.analyze(category)
    except SpendwatchError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"\n{category.name}")
    logger.info("=" * 80)
    if category.description:
        logger.info(category.description)
    _log_analysis(analysis)

    expenses = services.expenses.find_by_category(category.id)
    if not expenses:
        logger.info("\nNo expenses in this category.")
        return

    logger.info("\nExpenses:")
    for expense in expenses:
        logger.info(
            f"  {expense.date.isoformat()}  {format_money(expense.amount):>12}  "
            f"{expense.description}"
        )


def cmd_create(args, services):
    """Create a new category, prompting for anything not given as an option."""
    name = args.name
    description = args.description
    monthly_budget = args.budget

    if name is None:
        print("\nCreate New Category")
        print("=" * 80)
        name = input("Category name (e.g., Groceries): ").strip()
        description = input("Description: ").strip()
        monthly_budget = input("Monthly budget (e.g., 250.00): ").strip()

    try:
        category = services.categories.create(
            {
                "name": name,
                "description": description,
                "monthly_budget": monthly_budget,
            }
        )
    except ValidationError as e:
        logger.error("Could not create category:")
        _log_validation_errors(e)
        sys.exit(1)
    except SpendwatchError as e:
        logger.error(f"Error creating category: {e}")
        sys.exit(1)

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.description:
        logger.info(f"  Description: {category.description}")
    logger.info(f"  Monthly budget: {format_money(category.monthly_budget)}")


def cmd_edit(args, services):
    """Change a category's name, description or budget."""
    attrs = {}
    if args.name is not None:
        attrs["name"] = args.name
    if args.description is not None:
        attrs["description"] = args.description
    if args.budget is not None:
        attrs["monthly_budget"] = args.budget

    if not attrs:
        logger.error("Nothing to change. Pass --name, --description or --budget.")
        sys.exit(1)

    try:
        category = services.categories.get(args.category_id)
        category = services.categories.update(category, attrs)
    except ValidationError as e:
        logger.error("Could not update category:")
        _log_validation_errors(e)
        sys.exit(1)
    except SpendwatchError as e:
        logger.error(f"Error updating category: {e}")
        sys.exit(1)

    logger.info(f"✓ Category '{category.name}' updated.")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category = services.categories.find(args.category_id)
    if not category:
        logger.error(f"Category with ID {args.category_id} not found.")
        sys.exit(1)

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.description:
        logger.info(f"  Description: {category.description}")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    try:
        services.categories.delete(category)
    except ValidationError as e:
        logger.error(f"Cannot delete '{category.name}':")
        _log_validation_errors(e)
        sys.exit(1)
    except SpendwatchError as e:
        logger.error(f"Error deleting category: {e}")
        sys.exit(1)

    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def cmd_seed(args, services):
    """Seed categories from JSON file."""
    seed_file = Path(__file__).parent.parent / "db" / "seed" / "categories.json"

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    try:
        with open(seed_file, "r") as f:
            categories_data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    logger.info("\nSeeding categories from db/seed/categories.json")
    logger.info("=" * 80)

    created_count = 0
    skipped_count = 0

    for category_data in categories_data:
        name = category_data.get("name")
        if not name:
            logger.warning("Skipping category with no name")
            continue

        if services.categories.find_by_name(name):
            logger.info(f"⊘ Skipped '{name}' (already exists)")
            skipped_count += 1
            continue

        try:
            category = services.categories.create(category_data)
        except SpendwatchError as e:
            logger.error(f"Error creating category '{name}': {e}")
            continue

        logger.info(
            f"✓ Created '{name}' with budget {format_money(category.monthly_budget)}"
        )
        created_count += 1

    logger.info("=" * 80)
    logger.info("\nSeeding complete!")
    logger.info(f"Created: {created_count}")
    logger.info(f"Skipped: {skipped_count}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, and delete budget categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser(
        "list", help="List all categories with budget status"
    )
    list_parser.set_defaults(func=cmd_list)

    # categories show
    show_parser = categories_subparsers.add_parser(
        "show", help="Show a category and its expenses"
    )
    show_parser.add_argument("category_id", help="ID of the category")
    show_parser.set_defaults(func=cmd_show)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category (interactive without --name)"
    )
    create_parser.add_argument("--name", help="Category name")
    create_parser.add_argument("--description", help="Category description")
    create_parser.add_argument("--budget", help="Monthly budget, e.g. 250.00")
    create_parser.set_defaults(func=cmd_create)

    # categories edit
    edit_parser = categories_subparsers.add_parser("edit", help="Edit a category")
    edit_parser.add_argument("category_id", help="ID of the category to edit")
    edit_parser.add_argument("--name", help="New name")
    edit_parser.add_argument("--description", help="New description")
    edit_parser.add_argument("--budget", help="New monthly budget")
    edit_parser.set_defaults(func=cmd_edit)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument("category_id", help="ID of the category to delete")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Seed categories from JSON file"
    )
    seed_parser.set_defaults(func=cmd_seed)
