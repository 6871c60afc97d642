# apps/board/ordering.py

"""
Motor de ordenação - mantém a ordem densa das tarefas por coluna

Invariante: para toda coluna, os valores de ``order`` das tarefas são
exatamente {0, 1, ..., n-1}. Toda operação que altera ordens trava as
linhas das colunas envolvidas (SELECT ... FOR UPDATE, sempre em ordem
crescente de id) antes de ler o máximo ou deslocar vizinhos, o que
serializa operações concorrentes sobre a mesma coluna.
"""

import logging

from django.db import transaction
from django.db.models import F, Max

from apps.core.exceptions import ConflictError, NotFound
from apps.core.models import Board, Column, Task

logger = logging.getLogger(__name__)


class OrderingEngine:
    """
    Operações de posicionamento de tarefas e colunas

    Todos os métodos públicos abrem (ou reaproveitam) uma transação;
    quem chama pode agrupá-los numa transação maior.
    """

    # Tentativas para estabilizar a coluna de origem durante um move
    _max_lock_attempts = 3

    # === TRAVAS ===

    def lock_columns(self, *column_ids):
        """
        Trava as colunas informadas em ordem de id

        Returns:
            Dict[id, Column] apenas com as colunas que existem
        """
        ids = sorted({column_id for column_id in column_ids if column_id is not None})
        columns = Column.objects.select_for_update().select_related('column_name').filter(id__in=ids).order_by('id')
        return {column.id: column for column in columns}

    def lock_task(self, task_id, *column_ids):
        """
        Trava a coluna atual da tarefa (e as extras), depois a própria tarefa

        Se a tarefa trocar de coluna entre a leitura e a trava, tenta de novo.

        Returns:
            Tuple[task, Dict[id, Column]]

        Raises:
            NotFound: tarefa inexistente
        """
        with transaction.atomic():
            for _ in range(self._max_lock_attempts):
                current = Task.objects.filter(id=task_id).values_list('column_id', flat=True).first()
                if current is None:
                    raise NotFound('Task not found')

                columns = self.lock_columns(current, *column_ids)
                task = Task.objects.select_for_update().filter(id=task_id).first()
                if task is None:
                    raise NotFound('Task not found')
                if task.column_id == current:
                    return task, columns

            raise ConflictError('Task was moved concurrently')

    # === LEITURAS ===

    def next_order(self, column_id, exclude_task_id=None):
        """
        Próxima posição livre no fim da coluna: max(order) + 1, ou 0 se vazia

        Deve ser chamada com a coluna travada.
        """
        tasks = Task.objects.filter(column_id=column_id)
        if exclude_task_id is not None:
            tasks = tasks.exclude(id=exclude_task_id)
        current_max = tasks.aggregate(max_order=Max('order'))['max_order']
        return 0 if current_max is None else current_max + 1

    def next_column_order(self, board):
        """Próxima posição de coluna no board (trava o board)"""
        with transaction.atomic():
            Board.objects.select_for_update().filter(id=board.id).first()
            current_max = Column.objects.filter(board=board).aggregate(max_order=Max('order'))['max_order']
            return 0 if current_max is None else current_max + 1

    # === ESCRITAS ===

    def append(self, column):
        """
        Reserva a posição de fim de coluna para uma tarefa nova

        A trava da coluna vale até o fim da transação externa, então a
        tarefa deve ser criada dentro da mesma transação.
        """
        with transaction.atomic():
            self.lock_columns(column.id)
            return self.next_order(column.id)

    def move(self, task_id, target_column_id):
        """
        Move a tarefa para o fim da coluna de destino

        Fecha o buraco deixado na origem (inclusive quando origem e destino
        são a mesma coluna) e grava a nova coluna/posição, tudo na mesma
        transação.

        Returns:
            Tuple[task, source_column_id, target_column]
        """
        with transaction.atomic():
            task, columns = self.lock_task(task_id, target_column_id)
            source_column_id = task.column_id

            target = columns.get(int(target_column_id))
            if target is None:
                raise NotFound('Column not found')

            old_order = task.order
            self._close_gap(source_column_id, old_order, exclude_task_id=task.id)

            task.column = target
            task.order = self.next_order(target.id, exclude_task_id=task.id)
            task.save(update_fields=['column', 'order', 'updated_at'])

            logger.debug(
                f"↔️ Tarefa {task.id} movida: coluna {source_column_id}[{old_order}] -> {target.id}[{task.order}]"
            )
            return task, source_column_id, target

    def remove(self, task):
        """
        Apaga a tarefa e compacta a coluna de origem

        Espera a tarefa vinda de ``lock_task`` na mesma transação. As
        linhas filhas (Subtask, Comment, UserTask) caem em cascata.
        """
        with transaction.atomic():
            column_id = task.column_id
            task.delete()
            self.compact(column_id)

    def compact(self, column_id):
        """
        Renumera as tarefas da coluna para 0..n-1 preservando a ordem relativa

        Returns:
            Quantidade de tarefas que mudaram de posição
        """
        with transaction.atomic():
            self.lock_columns(column_id)
            changed = []
            for index, task in enumerate(Task.objects.filter(column_id=column_id).order_by('order', 'id')):
                if task.order != index:
                    task.order = index
                    changed.append(task)
            if changed:
                Task.objects.bulk_update(changed, ['order'])
                logger.debug(f"🧹 Coluna {column_id} compactada ({len(changed)} tarefas)")
            return len(changed)

    def _close_gap(self, column_id, order, exclude_task_id=None):
        """Desloca uma posição para cima tudo que estava depois de ``order``"""
        tasks = Task.objects.filter(column_id=column_id, order__gt=order)
        if exclude_task_id is not None:
            tasks = tasks.exclude(id=exclude_task_id)
        return tasks.update(order=F('order') - 1)


# Instância global do motor (Singleton pattern)
ordering = OrderingEngine()
