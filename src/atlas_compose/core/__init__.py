# src/atlas_compose/core/__init__.py
"""
Core do Atlas Compose.

Implementação canônica e pura da passada de avaliação: nenhuma camada do
core acessa rede, processos ou serviços. Efeitos colaterais passam
exclusivamente pelos protocolos de backend (`core.backends`).

Princípios fundamentais:
    - Mesmas entradas → mesma árvore, mesmos artefatos, mesmo plano
    - Nenhuma decisão silenciosa: conflitos e violações são explícitos
    - Estado é isolado por passada (EvaluationContext)
"""
