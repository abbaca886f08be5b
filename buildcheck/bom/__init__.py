"""Bill of materials — quantity takeoff from a validated design."""

from buildcheck.bom.estimator import bill_of_materials
from buildcheck.bom.report import BillOfMaterials, BomLine

__all__ = ["BillOfMaterials", "BomLine", "bill_of_materials"]
