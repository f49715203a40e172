# src/atlas_compose/__init__.py
"""
Atlas Compose: motor de composição declarativa de configuração de sistema.

Uma passada de avaliação recebe módulos (schema de opções, fragmentos,
asserções e declarações de renderização) e fontes de fragmentos, e produz
uma árvore resolvida, artefatos derivados e um plano de ativação.

Arquitetura em alto nível:
    - core.schema       → declaração de opções e estratégias de merge
    - core.fragments    → fragmentos, guards, fontes e Fragment Store
    - core.merge        → Merge Engine (árvore resolvida + proveniência)
    - core.conditional  → ponto fixo de fragmentos condicionais
    - core.validation   → tipos e asserções (violações coletadas)
    - core.render       → receitas de build, textos e service units
    - core.activation   → plano e execução de ativação
    - core.engine       → planejamento e execução dos Stages da passada
    - core.traceability → Manifest e Event Log
    - stages            → Stages canônicos (resolve → ... → activate)

Limites explícitos:
    - Não executa builds nem gerencia serviços: isso é papel dos backends
    - Não persiste estado entre passadas
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
