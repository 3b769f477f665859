"""
Data Validation Module

Rule-based quality checks for inventory observation and dimension frames,
run at the ingestion boundary before data reaches the metrics pipeline.

Features:
- Null checks on key columns
- Composite key uniqueness
- Range/boundary checks
- Allowed value checks
- Referential integrity against dimensions
- Dataset profiling
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Blocks the load
    WARNING = "warning"  # Logged, load continues
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def errors(self) -> List[ValidationCheck]:
        return [c for c in self.checks if not c.passed and c.severity == ValidationSeverity.ERROR]


def _missing_column(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("product_id")
        validator.add_range_check("inventory_level", min_value=0)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"not_null_{column}", column, severity)

            null_count = df[column].null_count()
            total = len(df)
            passed = null_count == 0

            return ValidationCheck(
                name=f"not_null_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} null values" if not passed else f"Column '{column}' has no null values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_check(
        self,
        columns: Union[str, Sequence[str]],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for uniqueness of a column or a composite key"""
        key = [columns] if isinstance(columns, str) else list(columns)
        name = f"unique_{'_'.join(key)}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in key if c not in df.columns]
            if missing:
                return _missing_column(name, missing[0], severity)

            total = len(df)
            unique_count = df.select(key).unique().height
            duplicate_count = total - unique_count
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Key {key} has {duplicate_count} duplicate rows" if not passed else f"Key {key} is unique",
                details={"unique_count": unique_count, "duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"range_{column}", column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=f"range_{column}",
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            combined = conditions[0]
            for cond in conditions[1:]:
                combined = combined | cond

            out_of_range = df.filter(combined).height
            total = len(df)
            passed = out_of_range == 0

            return ValidationCheck(
                name=f"range_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside range [{min_value}, {max_value}]" if not passed else "All values in range",
                details={"min": min_value, "max": max_value, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for positive values"""
        min_val = 0 if allow_zero else 0.0001
        return self.add_range_check(column, min_value=min_val, severity=severity)

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return _missing_column(f"enum_{column}", column, severity)

            invalid = df.filter(
                ~pl.col(column).is_in(allowed_values) & pl.col(column).is_not_null()
            ).height
            total = len(df)
            passed = invalid == 0

            return ValidationCheck(
                name=f"enum_{column}",
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {invalid} invalid values" if not passed else "All values are valid",
                details={"allowed_values": allowed_values, "invalid_count": invalid},
                failed_rows=invalid,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                passed = bool(check_func(df))
                return ValidationCheck(
                    name=name,
                    passed=passed,
                    severity=severity,
                    message="Check passed" if passed else message_on_fail,
                    total_rows=len(df),
                )
            except Exception as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {str(e)}",
                )

        self._checks.append(check)
        return self

    def add_referential_integrity_check(
        self,
        columns: Union[str, Sequence[str]],
        reference_df: pl.DataFrame,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check that every key value exists in a reference frame"""
        key = [columns] if isinstance(columns, str) else list(columns)
        name = f"ref_integrity_{'_'.join(key)}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in key if c not in df.columns or c not in reference_df.columns]
            if missing:
                return _missing_column(name, missing[0], severity)

            orphans = df.join(reference_df.select(key).unique(), on=key, how="anti").height
            total = len(df)
            passed = orphans == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Key {key} has {orphans} orphan records" if not passed else "Referential integrity maintained",
                details={"orphan_count": orphans},
                failed_rows=orphans,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.utcnow()
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {len(df)} rows")

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        completed_at = datetime.utcnow()

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return validation_result


def create_observations_validator(
    products: Optional[pl.DataFrame] = None,
    stores: Optional[pl.DataFrame] = None,
) -> DataValidator:
    """Create pre-configured validator for inventory observations"""
    validator = (
        DataValidator()
        .add_not_null_check("date")
        .add_not_null_check("store_id")
        .add_not_null_check("region")
        .add_not_null_check("product_id")
        .add_not_null_check("inventory_level")
        .add_not_null_check("units_sold")
        .add_unique_check(["date", "store_id", "region", "product_id"])
        .add_positive_check("inventory_level")
        .add_positive_check("units_sold")
        .add_positive_check("units_ordered", severity=ValidationSeverity.WARNING)
        .add_positive_check("price")
        .add_range_check("discount_pct", min_value=0, max_value=100)
    )

    # Unresolved dimension keys are dropped by the pipeline, so they only warn
    if products is not None:
        validator.add_referential_integrity_check("product_id", products)
    if stores is not None:
        validator.add_referential_integrity_check(["store_id", "region"], stores)

    return validator


def create_products_validator() -> DataValidator:
    """Create pre-configured validator for the product dimension"""
    return (
        DataValidator()
        .add_not_null_check("product_id")
        .add_not_null_check("category")
        .add_unique_check("product_id")
    )


def create_stores_validator() -> DataValidator:
    """Create pre-configured validator for the store dimension"""
    return (
        DataValidator()
        .add_not_null_check("store_id")
        .add_not_null_check("region")
        .add_unique_check(["store_id", "region"])
    )


def profile_observations(
    df: pl.DataFrame,
    products: Optional[pl.DataFrame] = None,
) -> Dict[str, Any]:
    """
    Summarize an observation frame for load audits.

    Returns record count, date range, distinct store locations, products and
    categories, and counts of suspicious rows.
    """
    profile: Dict[str, Any] = {
        "total_records": len(df),
        "date_min": df["date"].min() if len(df) else None,
        "date_max": df["date"].max() if len(df) else None,
        "date_range_days": None,
        "store_locations": df.select(["store_id", "region"]).unique().height,
        "unique_products": df["product_id"].n_unique(),
        "categories": [],
        "negative_inventory_rows": df.filter(pl.col("inventory_level") < 0).height,
        "zero_sales_and_inventory_rows": df.filter(
            (pl.col("units_sold") == 0) & (pl.col("inventory_level") == 0)
        ).height,
    }

    if profile["date_min"] is not None and profile["date_max"] is not None:
        profile["date_range_days"] = (profile["date_max"] - profile["date_min"]).days

    if products is not None:
        profile["categories"] = sorted(
            df.join(products.select(["product_id", "category"]), on="product_id", how="inner")
            ["category"].drop_nulls().unique().to_list()
        )

    logger.info("Observation profile", **{k: v for k, v in profile.items() if k != "categories"})
    return profile
