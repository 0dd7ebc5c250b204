import pandas as pd
import structlog
from pydantic import ValidationError

from telco_etl.data_validation import RawCustomerRecord
from telco_etl.exceptions import DataImportError
from telco_etl.schema import COLUMNS, PRIMARY_KEY
from telco_etl.utils import Utils

logger = structlog.get_logger(__name__)

'''
Loader for the raw customer export. It works in 2 phases:
1. Read Raw Data: reads the semicolon-delimited file as text, one row per customer
2. Validate Data: checks the header and every row with the RawCustomerRecord model,
   coercing the counter columns to integers

Every call builds a brand new table from the file (truncate-and-reload); nothing is
appended to a previously loaded table, so repeated runs cannot duplicate customer ids.
'''
class DataIngestion():
    def __init__(self, config: dict = None):
        # Read config
        self.config = config if config is not None else Utils().load_config()
        data_config = self.config.get("data", {})
        self.raw_data = data_config.get("raw_data")
        self.delimiter = data_config.get("delimiter", ";")
        self.encoding = data_config.get("encoding", "utf-8")

        # Commas are the decimal separator inside the monetary fields
        if self.delimiter == ",":
            raise DataImportError("A comma cannot be used as field delimiter")

    def read_raw_data(self, path: str = None) -> pd.DataFrame:
        # Read every field as raw text; blanks stay blank instead of becoming NaN
        path = path or self.raw_data
        if not path:
            raise DataImportError("No input file configured (data.raw_data)")

        try:
            df = pd.read_csv(
                path,
                sep=self.delimiter,
                dtype=str,
                keep_default_na=False,
                encoding=self.encoding,
            )
        except FileNotFoundError as e:
            raise DataImportError(f"Input file not found: {path}") from e
        except pd.errors.EmptyDataError as e:
            raise DataImportError(f"Input file is empty: {path}") from e
        except pd.errors.ParserError as e:
            # Raised when a row has more fields than the header
            raise DataImportError(f"Column count mismatch: {e}") from e

        # pandas turns the first column into the index when the data rows carry
        # one field more than the header
        if not isinstance(df.index, pd.RangeIndex):
            raise DataImportError("Column count mismatch: data rows are wider than the header")

        logger.info("Read raw data", path=str(path), rows=len(df))
        return df

    def validate_data(self, df: pd.DataFrame) -> pd.DataFrame:
        # Check the header, then validate each row with the RawCustomerRecord model
        if PRIMARY_KEY not in df.columns:
            raise DataImportError("Primary key column is missing", column=PRIMARY_KEY)

        missing = [col for col in COLUMNS if col not in df.columns]
        if missing:
            raise DataImportError(f"Missing columns: {', '.join(missing)}")

        extra = [col for col in df.columns if col not in COLUMNS]
        if extra:
            logger.warning("Ignoring undeclared columns", columns=extra)

        records = []
        for position, row in enumerate(df[COLUMNS].to_dict(orient="records"), start=1):
            # Short rows are padded with NaN by the reader
            short = [col for col, value in row.items() if pd.isna(value)]
            if short:
                raise DataImportError("Column count mismatch: row is shorter than the header", row=position, column=short[0])
            try:
                records.append(RawCustomerRecord(**row))
            except ValidationError as e:
                column = e.errors()[0]["loc"][0] if e.errors() and e.errors()[0]["loc"] else None
                raise DataImportError(f"Invalid value: {e.errors()[0]['msg']}", row=position, column=column) from e

        table = pd.DataFrame([record.model_dump() for record in records], columns=COLUMNS)
        logger.info("Data validated", rows=len(table))
        return table

    def load_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        # Same checks as `load` for a frame that was read elsewhere
        return self.validate_data(df.reset_index(drop=True))

    def load(self, path: str = None) -> pd.DataFrame:
        # Run the loader: read raw data, then validate it into a fresh table
        df = self.read_raw_data(path)
        return self.validate_data(df)

    def __call__(self, path: str = None) -> pd.DataFrame:
        return self.load(path)
