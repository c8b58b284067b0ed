#!/usr/bin/env python3
import sys
import traceback
import argparse

from config import load_config, GlobalConfig, SORT_ORDERS, MAX_PAGE, clamp
from fetch import run_search
from imagedb import JsonlImageDB, LocalImageStore
from kakao_api import KakaoAPI


def parse_args(argv=None):
	"""
	Build and parse the CLI for the image search binary.

	Returns:
		argparse.Namespace describing the keyword, config path, result
		limits, paging, sort order, rate override and bookmark flags.
	"""
	p = argparse.ArgumentParser(
		description="Search images and bookmark the results"
	)

	p.add_argument(
		"keyword",
		help="Search keyword"
	)

	p.add_argument(
		"--config",
		default="config.yaml",
		help="Path to config file"
	)

	p.add_argument(
		"--limit",
		type=int,
		default=None,
		help="Limit number of images to keep"
	)

	p.add_argument(
		"--pages",
		type=int,
		default=None,
		help="Maximum number of result pages to walk"
	)

	p.add_argument(
		"--sort",
		choices=SORT_ORDERS,
		default=None,
		help="Result order"
	)

	p.add_argument(
		"--rate",
		type=str,
		default=None,
		help="Override page rate, e.g. '2/second' or '1 second'",
	)

	p.add_argument(
		"--save",
		action="store_true",
		help="Bookmark the kept images"
	)

	p.add_argument(
		"--dry-run",
		action="store_true",
		help="Do not write bookmarks"
	)

	p.add_argument(
		"--dump-responses",
		action="store_true",
		help="Print raw API responses for debugging",
	)

	return p.parse_args(argv)


def apply_overrides(config: GlobalConfig, args: argparse.Namespace) -> None:
	"""
	Override config using CLI flags
	"""

	if args.limit is not None:
		print(f"[CLI] override limit: {args.limit}")
		config.runtime.limit = args.limit

	if args.pages is not None:
		print(f"[CLI] override pages: {args.pages}")
		config.search.max_pages = clamp(args.pages, 1, MAX_PAGE)

	if args.sort is not None:
		print(f"[CLI] override sort: {args.sort}")
		config.search.sort = args.sort

	if args.rate is not None:
		print(f"[CLI] override rate: {args.rate}")
		config.search.set_override_rate(args.rate)

	if args.save:
		config.runtime.save = True

	# dry-run (global flag)
	config.runtime.dry_run = args.dry_run


def main(argv=None):
	"""
	Orchestrate config loading, CLI overrides, bookmark store init and the
	search run.
	"""
	args = parse_args(argv)

	print("== Image Search ==")

	# load config
	try:
		config = load_config(args.config)
		print(f"[OK] Loaded config from {args.config}")
	except Exception as e:
		print(f"[ERROR] Failed to load config: {e}")
		traceback.print_exc()
		sys.exit(1)

	# CLI overrides
	apply_overrides(config, args)

	if not config.api.resolve_api_key():
		print("[ERROR] No REST API key configured (api.rest_api_key or KAKAO_REST_API_KEY)")
		sys.exit(1)

	# initialize bookmark store
	store = None
	if config.runtime.save:
		try:
			db = JsonlImageDB(config.paths.bookmarks_file)
			store = LocalImageStore(db)
			print(f"[OK] Initialized bookmarks: {config.paths.bookmarks_file}")
		except Exception as e:
			print(f"[ERROR] Failed to init bookmarks: {e}")
			traceback.print_exc()
			sys.exit(1)

	api = KakaoAPI(config, dump_raw=args.dump_responses)

	# run
	try:
		summary = run_search(api, store, args.keyword, config)
		print(f"[DONE] kept: {len(summary.kept)}, skipped: {summary.skipped}, saved: {summary.saved}")
	except KeyboardInterrupt:
		print("\n[WARN] Interrupted by user")
	except Exception as e:
		print(f"[ERROR] Fatal: {e}")
		traceback.print_exc()
		sys.exit(1)

	print("== Finished ==")


if __name__ == "__main__":
	main()
