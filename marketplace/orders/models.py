# module marketplace.orders.models
"""Statuts de commande.
- pending: créée, en attente du retour passerelle
- paid: paiement confirmé par la passerelle
- completed: finalisée sans paiement en ligne (aucune passerelle configurée)
- payment_failed: la session de paiement n’a pas pu être démarrée
- cancelled: annulée
"""
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    PAYMENT_FAILED = "payment_failed"
    CANCELLED = "cancelled"


# Commandes visibles dans l’historique utilisateur (les annulées en sont exclues)
HISTORY_STATUSES = (
    OrderStatus.PENDING.value,
    OrderStatus.PAID.value,
    OrderStatus.COMPLETED.value,
    OrderStatus.PAYMENT_FAILED.value,
)
