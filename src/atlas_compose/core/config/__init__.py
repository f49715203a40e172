# src/atlas_compose/core/config/__init__.py

"""
Camada de settings do Atlas Compose.

Este pacote contém as estruturas e utilitários responsáveis por carregar,
mesclar e identificar as *settings* do motor (fail-fast, paralelismo da
ativação, estágios opcionais habilitados).

Importante: settings NÃO são a configuração declarativa composta pelo motor.
Os fragmentos de configuração, com prioridades e estratégias de merge por
chave, vivem em `core.fragments` e `core.merge`. Aqui o merge é o deep-merge
simples de defaults + overrides locais.

Responsabilidades do pacote:
    - Carregamento de arquivos de settings (defaults + overrides locais)
    - Resolução das settings finais via deep-merge determinístico
    - Geração de hash canônico para rastreabilidade

Invariantes:
    - As settings finais são um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro
    - A mesma entrada sempre produz as mesmas settings
"""
