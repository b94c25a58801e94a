# paniyal/services/file_validation.py
import logging
from pathlib import Path
from typing import List, Tuple

logger = logging.getLogger(__name__)

# Leading bytes expected for each accepted document type
OLE_HEADER = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'  # legacy .doc (Compound File)
ZIP_HEADER = b'PK\x03\x04'                        # .docx (Office Open XML)
PDF_HEADER = b'%PDF'


class FileValidationService:
    """Content checks for uploaded task documents"""

    def __init__(self):
        self.expected_signatures = {
            '.pdf': [PDF_HEADER],
            '.doc': [OLE_HEADER],
            '.docx': [ZIP_HEADER],
        }

        self.dangerous_executables = {
            b'\x4d\x5a': 'PE executable',  # Windows PE
            b'\x7f\x45\x4c\x46': 'ELF executable',  # Linux ELF
            b'\xfe\xed\xfa': 'Mach-O executable',
            b'\xce\xfa\xed\xfe': 'Mach-O executable',
        }

    def validate_file_signature(self, file_path: str) -> Tuple[bool, str]:
        """
        Check the magic bytes of a stored file against its extension

        Args:
            file_path: Path to the file

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            with open(file_path, 'rb') as f:
                header = f.read(16)
        except OSError as e:
            logger.error(f"Error reading file {file_path}: {e}")
            return False, f"Error reading file: {e}"

        for signature, description in self.dangerous_executables.items():
            if header.startswith(signature):
                return False, f"Executable file detected: {description}"

        extension = Path(file_path).suffix.lower()
        signatures = self.expected_signatures.get(extension)
        if signatures is None:
            return False, f"File type '{extension}' is not allowed"
        if not any(header.startswith(signature) for signature in signatures):
            return False, f"File content does not match a {extension} document"
        return True, ""

    def validate_file_size(self, file_path: str, max_size: int) -> Tuple[bool, str]:
        size = Path(file_path).stat().st_size
        if size == 0:
            return False, "File is empty"
        if size > max_size:
            return False, f"File size exceeds maximum allowed size of {max_size / (1024*1024):.1f}MB"
        return True, ""

    def comprehensive_validation(self, file_path: str, max_size: int) -> Tuple[bool, List[str]]:
        """Run every check and collect the failures"""
        errors = []
        for is_valid, error in (
            self.validate_file_size(file_path, max_size),
            self.validate_file_signature(file_path),
        ):
            if not is_valid:
                errors.append(error)
        if errors:
            logger.warning(f"File validation failed for {file_path}: {'; '.join(errors)}")
        return not errors, errors


# Global instance
file_validator = FileValidationService()
