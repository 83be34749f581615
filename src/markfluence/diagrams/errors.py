"""Exceptions raised while rendering and embedding diagrams."""


class DiagramError(RuntimeError):
    """Base exception for diagram rendering problems."""


class DiagramBackendUnavailable(DiagramError):
    """Raised when diagrams must be rendered but no renderer is installed."""

    def __init__(self, command: str):
        super().__init__(
            f"Mermaid diagrams found but '{command}' is not available.\n"
            "  Install with: npm install -g @mermaid-js/mermaid-cli\n"
            "  Or disable mermaid rendering with --no-mermaid "
            "(or 'mermaid: false' in config)"
        )
        self.command = command


class DiagramRenderError(DiagramError):
    """Raised when the renderer fails on a single diagram."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


class DiagramNotRenderedError(DiagramError):
    """Raised when a diagram block reaches the emitter without an image.

    Diagrams are rendered before conversion; hitting this means the
    preprocessing step was skipped or the diagram failed to render.
    """

    def __init__(self, filename: str):
        super().__init__(
            "Mermaid diagram was not pre-rendered; preprocess_diagrams must "
            f"run before conversion.\nFilename: {filename}"
        )
        self.filename = filename
