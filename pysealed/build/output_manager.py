import os
import re

from llvmlite import binding as llvm

from ..builder import DispatchBuilder
from ..logger import logger


def default_output_dir():
    return os.environ.get('PYSEALED_OUTPUT_DIR', 'build')


def _ir_file_name(source_file):
    stem = os.path.splitext(os.path.basename(source_file))[0] or 'module'
    return re.sub(r'[^A-Za-z0-9_.-]', '_', stem) + '.ll'


class OutputManager:
    """
    Manages dispatch groups and .ll file generation.

    A group collects the dispatch plans of one source file; each group is
    lowered into its own LLVM module and written as <source stem>.ll.
    """

    def __init__(self):
        # Key: source file path
        # Value: dict with builder, plan count and ir file name
        self._pending_groups = {}

    def get_or_create_group(self, source_file):
        if source_file not in self._pending_groups:
            module_name = os.path.splitext(os.path.basename(source_file))[0]
            self._pending_groups[source_file] = {
                'builder': DispatchBuilder(f"pysealed.{module_name}"),
                'plans': 0,
                'ir_file': _ir_file_name(source_file),
            }
        return self._pending_groups[source_file]

    def add_plan(self, source_file, plan):
        """Lower a dispatch plan into the group of its source file."""
        group = self.get_or_create_group(source_file)
        group['builder'].add_plan(plan)
        group['plans'] += 1

    def add_plans(self, plans_by_file):
        for source_file, plans in plans_by_file.items():
            for plan in plans:
                self.add_plan(source_file, plan)

    def flush_all(self, output_dir=None):
        """
        Verify and write every non-empty group.

        Returns:
            list: Paths of the written .ll files
        """
        output_dir = output_dir or default_output_dir()
        os.makedirs(output_dir, exist_ok=True)

        written = []
        used_names = set()
        for source_file, group in self._pending_groups.items():
            if not group['plans']:
                continue

            ir_text = group['builder'].get_ir()
            try:
                llvm.parse_assembly(ir_text).verify()
            except RuntimeError as e:
                raise RuntimeError(f"Module verification failed for {source_file}: {e}") from e

            name = group['ir_file']
            base, ext = os.path.splitext(name)
            suffix = 1
            while name in used_names:
                name = f"{base}_{suffix}{ext}"
                suffix += 1
            used_names.add(name)

            path = os.path.join(output_dir, name)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(ir_text)
            logger.info(f"Wrote {path}", plans=group['plans'])
            written.append(path)
        return written

    def get_group(self, source_file):
        return self._pending_groups.get(source_file)

    def clear_all(self):
        """Clear all pending groups (for testing/reset)."""
        self._pending_groups.clear()

