"""
Logging module

Collects warnings raised while resolving masters, connects and shape references,
and routes log output through the standard logging package
"""
import logging
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field


@dataclass
class ExtractionWarning:
    """Warning during extraction"""
    element_id: Optional[str]
    warning_type: str  # 'unresolved_master', 'unresolved_connection', 'duplicate_shape', 'skipped_master', 'output_collision'
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class ExtractionLogger:
    """Logger for the extraction process"""

    def __init__(self, level: int = logging.INFO):
        """
        Args:
            level: Logging level applied to the vsdx2json logger
        """
        self.warnings: List[ExtractionWarning] = []
        self.logger = logging.getLogger('vsdx2json')

        # Logger configuration (default)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
        self.logger.setLevel(level)

    def set_level(self, level: int):
        """Change the logging level"""
        self.logger.setLevel(level)

    def _record(self, element_id: Optional[str], warning_type: str, message: str, details: Dict[str, Any]):
        warning = ExtractionWarning(
            element_id=element_id,
            warning_type=warning_type,
            message=message,
            details=details,
        )
        self.warnings.append(warning)
        self.logger.warning(f"[{element_id}] {message}")

    def warn_unresolved_master(self, shape_id: Optional[str], master_id: str, page_name: str = ""):
        """Record warning for a shape whose master reference is unknown"""
        self._record(
            shape_id,
            'unresolved_master',
            f"Unresolved master reference: {master_id}",
            {'master_id': master_id, 'page': page_name},
        )

    def warn_unresolved_connection(self, connector_id: Optional[str], shape_id: str, end: str):
        """Record warning for a connector endpoint that names no known shape"""
        self._record(
            connector_id,
            'unresolved_connection',
            f"Unresolved {end} shape: {shape_id}",
            {'shape_id': shape_id, 'end': end},
        )

    def warn_duplicate_shape(self, shape_id: Optional[str], page_name: str):
        """Record warning for a shape ID staged twice on the same page"""
        self._record(
            shape_id,
            'duplicate_shape',
            f"Duplicate shape ID on page {page_name!r}; keeping the first",
            {'page': page_name},
        )

    def warn_skipped_master(self, master_name: str, part_name: str):
        """Record warning for a Master element without an ID"""
        self._record(
            None,
            'skipped_master',
            f"Master without ID skipped: {master_name!r} ({part_name})",
            {'name': master_name, 'part': part_name},
        )

    def warn_output_collision(self, document_id: str, previous_id: str, path: str):
        """Record warning for a document whose outputs overwrite another document's"""
        self._record(
            document_id,
            'output_collision',
            f"Output {path} is also written for {previous_id}; the earlier file is overwritten",
            {'path': path, 'previous_document': previous_id},
        )

    def info(self, message: str):
        """Info log"""
        self.logger.info(message)

    def debug(self, message: str):
        """Debug log"""
        self.logger.debug(message)

    def error(self, message: str):
        """Error log"""
        self.logger.error(message)

    def get_warnings(self) -> List[ExtractionWarning]:
        """Get warning list"""
        return self.warnings

    def clear_warnings(self):
        """Clear warning list"""
        self.warnings.clear()


# Global logger instance
_default_logger = ExtractionLogger()


def get_logger() -> ExtractionLogger:
    """Get default logger"""
    return _default_logger
