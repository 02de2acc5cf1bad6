import sys
import os
import random
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from payments_engine import PaymentsEngine


def write_csv(tmp_path, rows):
    csv_file = tmp_path / "large_test.csv"
    csv_file.write_text('\n'.join(["type, client, tx, amount"] + rows))
    return str(csv_file)


class TestPaymentsEngineLargeScale:
    def test_interleaved_deposits_and_withdrawals(self, tmp_path):
        """Without disputes, available equals deposits minus the withdrawals that were covered."""
        rng = random.Random(1234)
        num_clients = 500
        balances = {client_id: Decimal("0") for client_id in range(1, num_clients + 1)}
        rows = []

        for tx_id in range(1, 8001):
            client_id = rng.randint(1, num_clients)
            amount = Decimal(rng.randint(1, 500_0000)) / 10000
            if rng.random() < 0.6:
                rows.append(f"deposit, {client_id}, {tx_id}, {amount}")
                balances[client_id] += amount
            else:
                rows.append(f"withdrawal, {client_id}, {tx_id}, {amount}")
                if balances[client_id] >= amount:
                    balances[client_id] -= amount

        ledger = PaymentsEngine().process_file(write_csv(tmp_path, rows))
        accounts = ledger.accounts()

        touched = {int(row.split(",")[1]) for row in rows}
        assert set(accounts) == touched
        for client_id in touched:
            assert accounts[client_id].available == balances[client_id], f"Client {client_id}"
            assert accounts[client_id].held == Decimal("0")
            assert accounts[client_id].locked is False

    def test_dispute_lifecycles_across_clients(self, tmp_path):
        rows = []
        deposits = (Decimal("120.5"), Decimal("80"), Decimal("0.0001"))

        def tx(client_id, n):
            return client_id * 10 + n

        for client_id in range(1, 201):
            for n, amount in enumerate(deposits, start=1):
                rows.append(f"deposit, {client_id}, {tx(client_id, n)}, {amount}")

        for client_id in range(1, 201):
            group = client_id % 4
            if group == 1:
                rows.append(f"dispute, {client_id}, {tx(client_id, 1)},")
                rows.append(f"resolve, {client_id}, {tx(client_id, 1)},")
            elif group == 2:
                rows.append(f"dispute, {client_id}, {tx(client_id, 2)},")
                rows.append(f"chargeback, {client_id}, {tx(client_id, 2)},")
                rows.append(f"deposit, {client_id}, {tx(client_id, 4)}, 1000")
            elif group == 3:
                rows.append(f"withdrawal, {client_id}, {tx(client_id, 4)}, 150")
                rows.append(f"dispute, {client_id}, {tx(client_id, 1)},")

        accounts = PaymentsEngine().process_file(write_csv(tmp_path, rows)).accounts()
        full = sum(deposits)

        for client_id in range(1, 201):
            account = accounts[client_id]
            group = client_id % 4
            if group in (0, 1):
                assert account.available == full, f"Client {client_id}"
                assert account.held == Decimal("0")
                assert account.locked is False
            elif group == 2:
                assert account.available == full - Decimal("80"), f"Client {client_id}"
                assert account.held == Decimal("0")
                assert account.locked is True
            else:
                assert account.available == full - Decimal("150") - Decimal("120.5"), f"Client {client_id}"
                assert account.available < 0
                assert account.held == Decimal("120.5")
                assert account.total == full - Decimal("150")
