"""Project tooling behind the CLI: layout, manifest and scaffolding workflow.

Import from the submodules directly (``sqlshift.tooling.layout`` etc.);
the scaffolder and snapshot store depend on ``tooling.fileio``.
"""
