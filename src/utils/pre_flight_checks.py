from src.utils.errors import log_message


class PreFlightCheckError(Exception):
    """Custom exception for pre-flight check failures."""
    pass


def run_store_pre_flight_checks(store):
    """
    Verifies that the Ghost database is reachable and holds the tables the
    import writes to.

    Args:
        store: The :class:`~src.migrators.ghost_store.GhostStore` for the run.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    log_message("Running pre-flight checks...")

    # Check 1: the connection answers a trivial query
    try:
        alive = store.ping()
    except Exception as e:
        raise PreFlightCheckError(f"Could not query the Ghost database: {e}") from e
    if not alive:
        raise PreFlightCheckError("The Ghost database returned an unexpected result for SELECT 1.")

    # Check 2: the schema is in place
    missing = store.missing_tables()
    if missing:
        raise PreFlightCheckError(
            f"Missing tables in the Ghost database: {', '.join(missing)}. Run scripts/initialize_database.py first."
        )

    log_message("Pre-flight checks passed successfully.")
