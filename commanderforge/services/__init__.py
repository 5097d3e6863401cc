"""
CommanderForge services.

Business logic for commander analysis, deck assembly and card data. Import
from the submodules directly; this package re-exports nothing so the
filtering layer can depend on individual services without import cycles.
"""
