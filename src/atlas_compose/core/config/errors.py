# src/atlas_compose/core/config/errors.py
"""
Exceções canônicas da camada de settings do Atlas Compose.

As exceções aqui definidas representam falhas estruturais durante o
carregamento e a resolução das settings do motor. Todas herdam de
`ConfigError`, permitindo captura genérica por CLI e testes.

Limites explícitos:
    - Não representam erros de composição (ver core.exceptions)
    - Não realizam fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados às settings do Atlas Compose.

    Limites explícitos:
        - Não representa erro de merge de fragmentos
        - Não representa erro de execução de estágio
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de settings base (defaults)
    não é encontrado no caminho especificado.

    Invariantes:
        - Sem defaults não existem settings efetivas válidas
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo não é suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"activation": {"max_workers": 4}}
        - override: {"activation": "serial"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """
