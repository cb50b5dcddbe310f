# ==============================================================================
# GUI MODULE INIT
# ==============================================================================
# PyQt6 front-end pieces for Resource Harvester.
#
# Components:
#   - QtPrompter: Dialog-based prompts for rename/clone and conversions
#   - ConvertWorker: Runs a folder conversion on a background thread
#
# Requires the 'gui' extra (PyQt6).
# ==============================================================================

from .prompts import QtPrompter, ConvertWorker, start_conversion

__all__ = ['QtPrompter', 'ConvertWorker', 'start_conversion']
