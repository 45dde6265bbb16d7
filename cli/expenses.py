#!/usr/bin/env python3

import sys
from datetime import date

from errors import BudgetExceededError, SpendwatchError, ValidationError
from logger import get_logger
from money import format_money

logger = get_logger()


def _resolve_category(services, category_input):
    """Look a category up by ID, falling back to its exact name."""
    category = services.categories.find(category_input)
    if category is None:
        category = services.categories.find_by_name(category_input)
    if category is None:
        logger.error(f"Category '{category_input}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)
    return category


def _report_failure(action: str, e: SpendwatchError) -> None:
    if isinstance(e, ValidationError):
        logger.error(f"Could not {action} expense:")
        for field, messages in e.errors.items():
            for message in messages:
                logger.error(f"  {field} {message}")
    elif isinstance(e, BudgetExceededError):
        current = e.analysis.current
        logger.error(f"Budget exceeded: {e}")
        logger.info(
            f"  Currently spent {format_money(current.total_expenses)} of "
            f"{format_money(current.budget)} ({current.percentage}%)"
        )
        logger.info("  Re-run without --validate-budget to record it anyway.")
    else:
        logger.error(f"Error trying to {action} expense: {e}")


def cmd_list(args, services):
    """List expenses, newest first."""
    if args.category:
        category = _resolve_category(services, args.category)
        expenses = services.expenses.find_by_category(category.id)
    else:
        expenses = services.expenses.find_all()

    if not expenses:
        logger.info("No expenses found.")
        return

    category_names = {c.id: c.name for c in services.categories.find_all()}

    logger.info(f"\n{'Date':<12} {'Amount':>12}  {'Category':<20} Description")
    logger.info("=" * 80)
    for expense in expenses:
        logger.info(
            f"{expense.date.isoformat():<12} {format_money(expense.amount):>12}  "
            f"{category_names.get(expense.category_id, '?')[:20]:<20} "
            f"{expense.description}"
        )
        if args.verbose:
            logger.info(f"{'':<12} ID: {expense.id}")
            logger.info(f"{'':<12} Notes: {expense.notes}")

    logger.info(f"\nTotal expenses: {len(expenses)}")


def cmd_add(args, services):
    """Record a new expense."""
    category = _resolve_category(services, args.category)

    attrs = {
        "description": args.description,
        "amount": args.amount,
        "date": args.date or date.today().isoformat(),
        "notes": args.notes,
        "category_id": category.id,
    }

    try:
        expense = services.expenses.create(attrs, validate_budget=args.validate_budget)
    except SpendwatchError as e:
        _report_failure("add", e)
        sys.exit(1)

    analysis = services.budgets.analyze(category)
    logger.info(f"✓ Expense recorded with ID: {expense.id}")
    logger.info(f"  {expense.description}: {format_money(expense.amount)}")
    logger.info(
        f"  {category.name} is now at {analysis.percentage}% of budget "
        f"[{analysis.status}]"
    )


def cmd_edit(args, services):
    """Change fields of an existing expense."""
    attrs = {}
    for field in ("description", "amount", "date", "notes"):
        value = getattr(args, field)
        if value is not None:
            attrs[field] = value
    if args.category is not None:
        attrs["category_id"] = _resolve_category(services, args.category).id

    if not attrs:
        logger.error("Nothing to change.")
        sys.exit(1)

    try:
        expense = services.expenses.get(args.expense_id)
        expense = services.expenses.update(
            expense, attrs, validate_budget=args.validate_budget
        )
    except SpendwatchError as e:
        _report_failure("update", e)
        sys.exit(1)

    logger.info(f"✓ Expense {expense.id} updated.")
    logger.info(f"  {expense.description}: {format_money(expense.amount)}")


def cmd_delete(args, services):
    """Delete an expense by ID."""
    expense = services.expenses.find(args.expense_id)
    if expense is None:
        logger.error(f"Expense with ID {args.expense_id} not found.")
        sys.exit(1)

    logger.info("\nExpense to delete:")
    logger.info(f"  {expense.date.isoformat()}  {expense.description}")
    logger.info(f"  Amount: {format_money(expense.amount)}")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this expense? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    try:
        services.expenses.delete(expense)
    except SpendwatchError as e:
        _report_failure("delete", e)
        sys.exit(1)

    logger.info("✓ Expense deleted successfully.")


def setup_parser(subparsers):
    """Setup expenses subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "expenses",
        help="Manage expenses",
        description="Record, list, edit and delete expenses",
    )

    expenses_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available expense commands",
        dest="subcommand",
        required=True,
    )

    # expenses list
    list_parser = expenses_subparsers.add_parser("list", help="List expenses")
    list_parser.add_argument("--category", help="Only this category (ID or name)")
    list_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show IDs and notes"
    )
    list_parser.set_defaults(func=cmd_list)

    # expenses add
    add_parser = expenses_subparsers.add_parser("add", help="Record an expense")
    add_parser.add_argument("description", help="What the money was spent on")
    add_parser.add_argument("amount", help="Amount, e.g. 12.50")
    add_parser.add_argument(
        "--category", required=True, help="Category ID or exact name"
    )
    add_parser.add_argument("--date", help="YYYY-MM-DD (default: today)")
    add_parser.add_argument("--notes", required=True, help="Notes for the expense")
    add_parser.add_argument(
        "--validate-budget",
        action="store_true",
        help="Refuse the expense if it would put the category over budget",
    )
    add_parser.set_defaults(func=cmd_add)

    # expenses edit
    edit_parser = expenses_subparsers.add_parser("edit", help="Edit an expense")
    edit_parser.add_argument("expense_id", help="ID of the expense to edit")
    edit_parser.add_argument("--description", help="New description")
    edit_parser.add_argument("--amount", help="New amount")
    edit_parser.add_argument("--date", help="New date (YYYY-MM-DD)")
    edit_parser.add_argument("--notes", help="New notes")
    edit_parser.add_argument("--category", help="Move to this category (ID or name)")
    edit_parser.add_argument(
        "--validate-budget",
        action="store_true",
        help="Refuse the change if it would put the category over budget",
    )
    edit_parser.set_defaults(func=cmd_edit)

    # expenses delete
    delete_parser = expenses_subparsers.add_parser(
        "delete", help="Delete an expense by ID"
    )
    delete_parser.add_argument("expense_id", help="ID of the expense to delete")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)
