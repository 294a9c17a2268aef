"""CLI entry point for freshkeep."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from datetime import date, timedelta

from dotenv import load_dotenv

from .config import FreshkeepConfig, load_config
from .db import InventoryDB, NotificationDB, RecipeDB, ScanHistoryDB
from .generation import GenerationClient, GroceryAI
from .inventory import InventoryService
from .matcher import RecipeRecommender
from .models import InventoryItem
from .notifications import ExpiryNotifier
from .scanner import Scanner
from .seed import ensure_seeded
from .stats import compute_stats


@dataclass
class _Stores:
    inventory: InventoryDB
    notifications: NotificationDB
    recipes: RecipeDB
    scans: ScanHistoryDB

    def close(self) -> None:
        for db in (self.inventory, self.notifications, self.recipes, self.scans):
            db.close()


def _open_stores(config: FreshkeepConfig) -> _Stores:
    path = config.database.path
    return _Stores(
        inventory=InventoryDB(path),
        notifications=NotificationDB(path),
        recipes=RecipeDB(path),
        scans=ScanHistoryDB(path),
    )


def _make_ai(config: FreshkeepConfig) -> GroceryAI:
    return GroceryAI(GenerationClient.from_config(config))


def _make_notifier(config: FreshkeepConfig, stores: _Stores) -> ExpiryNotifier:
    ai = _make_ai(config) if config.notifications.ai_phrasing else None
    return ExpiryNotifier.from_config(config, stores.inventory, stores.notifications, ai=ai)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="freshkeep",
        description="Track groceries, get expiry alerts and recipe suggestions",
    )
    parser.add_argument("--config", "-c", type=str, default=None, help="Config file path (TOML)")
    parser.add_argument("--user", "-u", type=int, default=1, help="User ID (default: 1)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("seed", help="Insert sample data into empty tables")

    add_parser = sub.add_parser("add", help="Add an item to the inventory")
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("--category", type=str, default="Other")
    when = add_parser.add_mutually_exclusive_group(required=True)
    when.add_argument("--expires", type=date.fromisoformat, help="Expiry date (YYYY-MM-DD)")
    when.add_argument("--days", type=int, help="Days until expiry")
    add_parser.add_argument("--quantity", type=float, default=1.0)
    add_parser.add_argument("--unit", type=str, default="pieces")
    add_parser.add_argument("--location", type=str, default="Refrigerator")

    list_parser = sub.add_parser("list", help="List inventory items")
    list_parser.add_argument("--search", type=str, default=None)
    list_parser.add_argument("--category", type=str, default=None)
    list_parser.add_argument("--location", type=str, default=None)
    list_parser.add_argument("--expiring", type=int, default=None, metavar="DAYS")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    consume_parser = sub.add_parser("consume", help="Mark an item as consumed")
    consume_parser.add_argument("item_id", type=int)

    sub.add_parser("notify", help="Run the expiry notification pass")

    ntf_parser = sub.add_parser("notifications", help="Show notifications")
    ntf_parser.add_argument("--unread", action="store_true")
    ntf_parser.add_argument("--read", type=int, default=None, metavar="ID", help="Mark as read")

    sug_parser = sub.add_parser("suggest", help="Generate recipe suggestions")
    sug_parser.add_argument(
        "--ingredients", type=str, nargs="+", default=None,
        help="Available ingredients (default: current inventory)",
    )
    sug_parser.add_argument("--ai", action="store_true", help="Also generate new recipes with AI")

    list_sug_parser = sub.add_parser("suggestions", help="Show unviewed suggestions")
    list_sug_parser.add_argument("--view", type=int, default=None, metavar="ID")
    list_sug_parser.add_argument("--accept", type=int, default=None, metavar="ID")

    save_parser = sub.add_parser("save", help="Save a recipe to your list")
    save_parser.add_argument("recipe_id", type=int)
    save_parser.add_argument("--no-favorite", action="store_true", help="Save without marking as favorite")
    save_parser.add_argument("--notes", type=str, default=None)

    rate_parser = sub.add_parser("rate", help="Rate a recipe from 1 to 5")
    rate_parser.add_argument("recipe_id", type=int)
    rate_parser.add_argument("rating", type=int, choices=range(1, 6))
    rate_parser.add_argument("--notes", type=str, default=None)

    sub.add_parser("saved", help="Show your saved recipes")

    popular_parser = sub.add_parser("popular", help="Show the best-rated recipes")
    popular_parser.add_argument("--limit", type=int, default=10)

    stats_parser = sub.add_parser("stats", help="Show dashboard stats")
    stats_parser.add_argument("--json", action="store_true", help="Output JSON")

    scan_parser = sub.add_parser("scan", help="Recognize groceries from an image description")
    scan_parser.add_argument("description", type=str)

    nut_parser = sub.add_parser("nutrition", help="Estimate nutrition for an item")
    nut_parser.add_argument("name", type=str)

    sweep_parser = sub.add_parser("sweep", help="Run the expiry sweep")
    sweep_parser.add_argument(
        "--daemon", action="store_true", help="Keep running on the configured schedule"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)
    stores = _open_stores(config)

    try:
        match args.command:
            case "seed":
                _cmd_seed(stores, args)
            case "add":
                asyncio.run(_cmd_add(config, stores, args))
            case "list":
                _cmd_list(config, stores, args)
            case "consume":
                asyncio.run(_cmd_consume(config, stores, args))
            case "notify":
                asyncio.run(_cmd_notify(config, stores, args))
            case "notifications":
                _cmd_notifications(config, stores, args)
            case "suggest":
                asyncio.run(_cmd_suggest(config, stores, args))
            case "suggestions":
                _cmd_suggestions(config, stores, args)
            case "save":
                _cmd_save(config, stores, args)
            case "rate":
                _cmd_rate(config, stores, args)
            case "saved":
                _cmd_saved(config, stores, args)
            case "popular":
                _cmd_popular(config, stores, args)
            case "stats":
                _cmd_stats(config, stores, args)
            case "scan":
                asyncio.run(_cmd_scan(config, stores, args))
            case "nutrition":
                asyncio.run(_cmd_nutrition(config, args))
            case "sweep":
                asyncio.run(_cmd_sweep(config, stores, args))
    finally:
        stores.close()


def _format_item(item: InventoryItem) -> str:
    days = (item.expiry_date - date.today()).days
    when = "expired" if days < 0 else f"{days}d left"
    return (
        f"  #{item.id:<4} {item.name:<24} {item.quantity:g} {item.unit:<10} "
        f"{item.location:<12} {item.expiry_date} ({when})"
    )


def _cmd_seed(stores: _Stores, args) -> None:
    items, recipes = ensure_seeded(stores.inventory, stores.recipes, user_id=args.user)
    print(f"Seeded {items} items and {recipes} recipes.")


async def _cmd_add(config, stores: _Stores, args) -> None:
    expiry = args.expires or date.today() + timedelta(days=args.days)
    service = InventoryService(stores.inventory, _make_notifier(config, stores))
    item = await service.add_item(
        InventoryItem(
            user_id=args.user,
            name=args.name,
            category=args.category,
            expiry_date=expiry,
            quantity=args.quantity,
            unit=args.unit,
            location=args.location,
        )
    )
    if item is None:
        print("Could not add item.", file=sys.stderr)
        sys.exit(1)
    print(f"Added #{item.id} {item.name} (expires {item.expiry_date})")


def _cmd_list(config, stores: _Stores, args) -> None:
    service = InventoryService(stores.inventory, _make_notifier(config, stores))
    if args.search:
        items = service.search(args.user, args.search)
    elif args.category:
        items = service.by_category(args.user, args.category)
    elif args.location:
        items = service.by_location(args.user, args.location)
    elif args.expiring is not None:
        items = service.get_expiring(args.user, days=args.expiring)
    else:
        items = service.list_items(args.user)

    if args.json:
        data = [
            {
                "id": i.id,
                "name": i.name,
                "category": i.category,
                "quantity": i.quantity,
                "unit": i.unit,
                "location": i.location,
                "expiryDate": i.expiry_date.isoformat(),
            }
            for i in items
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not items:
        print("No items found.")
        return
    print(f"{len(items)} items:")
    for item in items:
        print(_format_item(item))


async def _cmd_consume(config, stores: _Stores, args) -> None:
    service = InventoryService(stores.inventory, _make_notifier(config, stores))
    if await service.consume_item(args.item_id):
        print(f"Consumed #{args.item_id}")
    else:
        print(f"Item #{args.item_id} not found.", file=sys.stderr)
        sys.exit(1)


async def _cmd_notify(config, stores: _Stores, args) -> None:
    created = await _make_notifier(config, stores).schedule(args.user)
    print(f"Created {len(created)} notifications.")
    for n in created:
        print(f"  [{n.priority}] {n.title}: {n.message}")


def _cmd_notifications(config, stores: _Stores, args) -> None:
    notifier = _make_notifier(config, stores)
    if args.read is not None:
        ok = notifier.mark_read(args.read)
        print(f"Marked #{args.read} as read." if ok else f"Notification #{args.read} not found.")
        return

    notifications = notifier.list_notifications(args.user, unread_only=args.unread)
    if not notifications:
        print("No notifications.")
        return
    for n in notifications:
        mark = " " if n.read else "*"
        print(f" {mark} #{n.id:<4} [{n.priority:<6}] {n.title}: {n.message}")


async def _cmd_suggest(config, stores: _Stores, args) -> None:
    ai = _make_ai(config) if args.ai else None
    recommender = RecipeRecommender.from_config(
        config, stores.recipes, inventory_db=stores.inventory, ai=ai
    )
    if args.ingredients:
        available = args.ingredients
    else:
        available = [i.name for i in stores.inventory.get_active_items(args.user, limit=200)]

    if args.ai:
        suggestions = await recommender.generate_ai_recipes(args.user, available)
    else:
        suggestions = recommender.generate_suggestions(args.user, available)

    if not suggestions:
        print("No matching recipes.")
        return
    print(f"{len(suggestions)} suggestions:")
    for s in suggestions:
        name = s.recipe.name if s.recipe else f"recipe #{s.recipe_id}"
        print(f"  {s.match_score:>3}%  {name}  ({s.available_count}/{s.total_count} ingredients)")


def _cmd_suggestions(config, stores: _Stores, args) -> None:
    recommender = RecipeRecommender.from_config(config, stores.recipes)
    if args.view is not None:
        recommender.mark_viewed(args.view)
    if args.accept is not None:
        recommender.accept(args.accept)

    suggestions = recommender.list_suggestions(args.user)
    if not suggestions:
        print("No unviewed suggestions.")
        return
    for s in suggestions:
        print(f"  #{s.id:<4} {s.match_score:>3}%  {s.recipe.name}")
        print(f"         uses: {', '.join(s.matching_ingredients)}")


def _cmd_save(config, stores: _Stores, args) -> None:
    recommender = RecipeRecommender.from_config(config, stores.recipes)
    saved = recommender.save_recipe(
        args.user, args.recipe_id, favorite=not args.no_favorite, notes=args.notes
    )
    if saved is None:
        print(f"Could not save recipe #{args.recipe_id}.", file=sys.stderr)
        sys.exit(1)
    label = "favorites" if saved.favorite else "your recipes"
    print(f"Saved {saved.recipe.name} to {label}.")


def _cmd_rate(config, stores: _Stores, args) -> None:
    recommender = RecipeRecommender.from_config(config, stores.recipes)
    saved = recommender.rate_recipe(args.user, args.recipe_id, args.rating, notes=args.notes)
    if saved is None:
        print(f"Could not rate recipe #{args.recipe_id}.", file=sys.stderr)
        sys.exit(1)
    print(f"Rated {saved.recipe.name} {saved.rating}/5.")


def _cmd_saved(config, stores: _Stores, args) -> None:
    saved = RecipeRecommender.from_config(config, stores.recipes).saved_recipes(args.user)
    if not saved:
        print("No saved recipes.")
        return
    for s in saved:
        star = "*" if s.favorite else " "
        rating = f"{s.rating}/5" if s.rating else "-"
        print(f" {star} #{s.recipe_id:<4} {s.recipe.name:<32} {rating}")


def _cmd_popular(config, stores: _Stores, args) -> None:
    rated = RecipeRecommender.from_config(config, stores.recipes).popular_recipes(args.limit)
    if not rated:
        print("No recipes.")
        return
    for r in rated:
        avg = f"{r.average_rating:.1f}" if r.average_rating is not None else "-"
        print(f"  #{r.recipe.id:<4} {r.recipe.name:<32} {avg} ({r.rating_count} ratings)")


def _cmd_stats(config, stores: _Stores, args) -> None:
    stats = compute_stats(
        args.user,
        stores.inventory,
        stores.scans,
        expiring_days=config.stats.expiring_days,
        recent_scan_days=config.stats.recent_scan_days,
    )
    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
        return
    print(f"Items in stock:    {stats.total_items}")
    print(f"Expiring soon:     {stats.expiring_items}")
    print(f"Scans this week:   {stats.recent_scans}")
    print(f"Waste reduced:     {stats.waste_reduced}%")
    print(f"Money saved:       ${stats.money_saved}")


async def _cmd_scan(config, stores: _Stores, args) -> None:
    ai = _make_ai(config)
    service = InventoryService(stores.inventory, _make_notifier(config, stores))
    scanner = Scanner.from_config(config, ai, stores.scans, service)
    scan = await scanner.scan(args.user, args.description)
    if not scan.success:
        print(f"Scan failed: {scan.error_message}", file=sys.stderr)
        return
    print(f"Recognized {len(scan.recognized_items)} items in {scan.processing_ms} ms:")
    for item in sorted(scan.recognized_items, key=lambda x: x.confidence, reverse=True):
        print(f"  {item.name:<24} {item.confidence:.0%}  [{item.category}]")


async def _cmd_nutrition(config, args) -> None:
    info = await _make_ai(config).analyze_nutrition(args.name)
    if info is None:
        print("Nutrition data is not available.", file=sys.stderr)
        return
    print(f"{args.name} (per 100g):")
    print(f"  Calories: {info.calories:g} kcal")
    print(f"  Protein:  {info.protein:g} g")
    print(f"  Carbs:    {info.carbs:g} g")
    print(f"  Fat:      {info.fat:g} g")
    print(f"  Fiber:    {info.fiber:g} g")
    print(f"  Sugar:    {info.sugar:g} g")
    print(f"  Sodium:   {info.sodium:g} mg")


async def _cmd_sweep(config, stores: _Stores, args) -> None:
    from .sweeper import ExpirySweeper, run_sweep

    notifier = _make_notifier(config, stores)
    if not args.daemon:
        created = await run_sweep(stores.inventory, notifier)
        print(f"Created {created} notifications.")
        return

    if not config.sweeper.enabled:
        print("The sweeper is disabled. Set [sweeper] enabled = true.", file=sys.stderr)
        sys.exit(1)

    sweeper = ExpirySweeper(config, stores.inventory, notifier)
    sweeper.start()
    try:
        await asyncio.Event().wait()
    finally:
        sweeper.stop()
