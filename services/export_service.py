import csv
import io
from typing import Iterable

from models.transaction import Transaction

CSV_HEADER = ['ID', 'Category', 'Amount', 'Type', 'Description', 'Date']


def _number(value: float):
    value = round(value, 2)
    return int(value) if float(value).is_integer() else value


class ExportService:
    """
    Export des transactions au format CSV.
    Les champs texte sont toujours entre guillemets, les guillemets internes doublés.
    """

    def to_csv(self, transactions: Iterable[Transaction]) -> str:
        output = io.StringIO()
        output.write(','.join(CSV_HEADER) + '\n')

        writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator='\n')
        for t in transactions:
            writer.writerow([
                t.id,
                t.category,
                _number(t.amount),
                t.kind.value,
                t.description or '',
                t.date
            ])
        return output.getvalue()
