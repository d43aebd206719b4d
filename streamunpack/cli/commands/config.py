"""Configuration command implementations."""
from ...core import config


def config_set_command(args) -> None:
    """Set one or more global configuration values.

    Args:
        args: Command line arguments containing a list of KEY=VALUE pairs
    """
    updates = {}
    for arg in args.pairs:
        if '=' not in arg:
            raise ValueError(f"Argument '{arg}' should be in the form KEY=VALUE")
        key, value = arg.split('=', 1)
        updates[key] = config.validate_config_value(key, value)

    global_config = config.load_global_config()
    global_config.update(updates)
    config.save_global_config(global_config)
    print(f"Updated {len(updates)} global config keys.")

def config_get_command(args) -> None:
    """Print a global configuration value.

    Args:
        args: Command line arguments containing key
    """
    global_config = config.load_global_config()
    if args.key not in global_config:
        raise ValueError(f"Config key '{args.key}' not found")
    print(global_config[args.key])

def config_list_command(args) -> None:
    """Print the current configuration.

    Args:
        args: Command line arguments (unused)
    """
    global_config = config.load_global_config()
    print("Global config:")
    for key, value in global_config.items():
        print(f"  {key}: {value}")
