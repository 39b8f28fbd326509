import sys

from optica import create_app
from optica.services.payment_calculation_service import PaymentCalculationService


def recalculate_debts(client_id=None):
    app = create_app()
    with app.app_context():
        print("Iniciando recalculo de deudas de clientes...")

        result = PaymentCalculationService.recalculate_client_debts(client_id)

        for change in result["clients"]:
            print(
                f"Cliente {change['id']}: {change['old_debt']:.2f} -> "
                f"{change['new_debt']:.2f} (diferencia {change['diff']:+.2f})"
            )
        print(f"Recalculo completado: {result['updated']} clientes actualizados.")
        return result


if __name__ == "__main__":
    recalculate_debts(int(sys.argv[1]) if len(sys.argv) > 1 else None)
