"""
Entry point for the WordPress to Ghost import tool.
"""

import glob
import os

from src.migration_tool import GhostImportTool
from src.utils.errors import log_message
from src.utils.pre_flight_checks import PreFlightCheckError, run_store_pre_flight_checks

CONFIG_FILE = "config/migration_config.json"


def main():
    """
    Main function to run the WordPress to Ghost import tool.
    """
    tool = GhostImportTool(config_file=CONFIG_FILE)
    log_message("Starting WordPress to Ghost import.")

    # Dynamically find export files in the exports directory
    docs_path = tool.config["migration"]["exports_dir"]
    csv_files = glob.glob(os.path.join(docs_path, "*.csv"))
    xml_files = glob.glob(os.path.join(docs_path, "*.xml"))

    log_message(f"Discovered CSV files: {csv_files}", level="DEBUG")
    log_message(f"Discovered XML files: {xml_files}", level="DEBUG")

    if not csv_files and not xml_files:
        log_message(
            f"No WordPress export files (.csv or .xml) found in '{docs_path}' directory.",
            level="ERROR",
        )
        return

    posts = []
    for csv_path in csv_files:
        posts.extend(tool.extract_posts(csv_path=csv_path))

    for xml_path in xml_files:
        xml_posts = tool.extract_posts(xml_path=xml_path)

        # Simple check to avoid adding duplicate posts if they exist in both sources
        existing_slugs = {p.get('slug') for p in posts}
        posts.extend(p for p in xml_posts if p.get('slug') not in existing_slugs)

    if not posts:
        log_message("No posts found in any of the export files.", level="ERROR")
        return

    log_message(f"Found a total of {len(posts)} posts to import.")

    try:
        run_store_pre_flight_checks(tool.store)
    except PreFlightCheckError as e:
        log_message(str(e), level="ERROR")
        return

    try:
        tool.import_posts(posts)
    finally:
        tool.store.close()

    log_message("Import process finished.")


if __name__ == "__main__":
    main()
