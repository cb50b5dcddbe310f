# ==============================================================================
# RESOURCE HARVESTER - MAIN ENTRY POINT
# ==============================================================================
# Launcher for Resource Harvester.
#
# Handles a few launcher-level flags itself and hands everything else to the
# command-line interface.
#
# Usage:
#   python main.py --version        # Show version information
#   python main.py --paths          # Show data paths and exit
#   python main.py --check          # Check dependencies and exit
#   python main.py convert Mods Project
#   python main.py --help           # CLI help
# ==============================================================================

import sys
import traceback

# ==============================================================================
# BANNER
# ==============================================================================

def print_banner():
    """Print the application banner."""
    from resource_harvester import __version__, __description__

    print("=" * 60)
    print(f"  RESOURCE HARVESTER v{__version__}")
    print(f"  {__description__}")
    print("=" * 60)


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    # Core dependencies (always required)
    core_deps = ['sqlalchemy', 'PIL']

    for dep in core_deps:
        try:
            __import__(dep)
        except ImportError:
            missing.append(dep)

    return (len(missing) == 0, missing)


# ==============================================================================
# ARGUMENT PARSING
# ==============================================================================

def parse_args(argv):
    """Pick out the launcher flags; everything else goes to the CLI."""
    return {
        'version': '--version' in argv,
        'check': '--check' in argv,
        'paths': '--paths' in argv,
    }


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main(argv=None):
    """
    Main entry point for Resource Harvester.

    Returns:
        Exit code (0 for success)
    """
    argv = sys.argv[1:] if argv is None else argv
    args = parse_args(argv)

    # Handle --check before importing anything that needs the dependencies
    if args['check']:
        print("Checking dependencies...")
        print(f"  Python: {sys.version}")

        all_ok, missing = check_dependencies()

        if all_ok:
            print("[OK] All core dependencies installed")
        else:
            print(f"[MISSING] {', '.join(missing)}")

        # Check optional deps
        print("\nOptional dependencies:")
        try:
            from PyQt6.QtCore import PYQT_VERSION_STR
            print(f"  [OK] PyQt6 {PYQT_VERSION_STR}")
        except ImportError:
            print(f"  [--] PyQt6 (not available)")

        return 0 if all_ok else 1

    all_ok, missing = check_dependencies()
    if not all_ok:
        print(f"[ERROR] Missing required packages: {', '.join(missing)}")
        print("Install with: pip install -e .")
        return 1

    # Handle --version
    if args['version']:
        print_banner()
        return 0

    # Handle --paths
    if args['paths']:
        from resource_harvester.core.config import Config
        from resource_harvester.core.paths import Paths

        config = Config()
        config.load()
        print("Resource Harvester Paths:")
        print(f"  User Data:      {Paths.get_user_data_dir()}")
        print(f"  Config:         {config.config_path}")
        print(f"  Database:       {config.database_path}")
        print(f"  Reports:        {Paths.get_reports_dir()}")
        return 0

    try:
        from resource_harvester.cli import main as cli_main
        return cli_main(argv)
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted")
        return 130
    except Exception as e:
        print(f"\n[FATAL ERROR] {e}")
        traceback.print_exc()
        return 1


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
