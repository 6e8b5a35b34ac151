from __future__ import annotations

import sys
from importlib.resources import files
from pathlib import Path

USAGE = """\
Uso:
  smartpdv init                              cria os arquivos de configuracao
  smartpdv pix VALOR [DESCRICAO] [--qr ARQ]  gera o codigo PIX copia e cola
  smartpdv chave TIPO VALOR                  valida uma chave PIX
  smartpdv chave-aleatoria                   gera uma chave aleatoria
  smartpdv status TXID                       consulta o status de um pagamento
  smartpdv cupons                            lista os cupons ativos
"""


def _init_config() -> None:
    """Copy bundled config templates to the user's config directory."""
    from smartpdv.config import get_config_dir

    config_dir = get_config_dir()
    templates = files("smartpdv") / "templates"
    config_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in ["pix.yaml.example", "coupons.yaml.example"]:
        dest = config_dir / rel
        if dest.exists():
            print(f"  já existe: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  criado: {dest}")
        copied += 1

    print()
    print(f"Configuração: {config_dir}")
    print()
    if copied:
        print("Próximos passos:")
        print(f"  1. cp {config_dir / 'pix.yaml.example'} {config_dir / 'pix.yaml'}")
        print("  2. Edite pix.yaml com a chave PIX do estabelecimento")
        print("  3. (opcional) cp coupons.yaml.example coupons.yaml")
    else:
        print("Nenhum arquivo novo criado (todos já existiam).")


def _pop_option(args: list[str], name: str) -> str | None:
    """Remove ``name VALUE`` from *args* and return VALUE."""
    if name not in args:
        return None
    i = args.index(name)
    if i + 1 >= len(args):
        raise ValueError(f"{name} requer um argumento")
    value = args[i + 1]
    del args[i : i + 2]
    return value


def _cmd_pix(args: list[str]) -> int:
    from smartpdv.config import load_pix_merchant
    from smartpdv.services.exceptions import PdvError
    from smartpdv.services.pix_codec import build_pix_code, request_for_sale
    from smartpdv.services.qr_encoder import PngQrEncoder

    try:
        qr_path = _pop_option(args, "--qr")
    except ValueError as e:
        print(f"Erro: {e}")
        return 2
    if not args:
        print(USAGE)
        return 2

    try:
        merchant = load_pix_merchant()
        request = request_for_sale(merchant, args[0].replace(",", "."), args[1] if len(args) > 1 else None)
        code = build_pix_code(request, encoder=PngQrEncoder() if qr_path else None)
    except PdvError as e:
        print(f"Erro: {e}")
        return 1

    print(code.copy_and_paste)
    print(f"txid: {request.transaction_id}", file=sys.stderr)
    if qr_path and code.image is not None:
        Path(qr_path).write_bytes(code.image)
        print(f"QR Code salvo em {qr_path}", file=sys.stderr)
    return 0


def _cmd_chave(args: list[str]) -> int:
    from smartpdv.utils.validators import validate_pix_key

    if len(args) != 2:
        print(USAGE)
        return 2
    key_type, key = args
    if validate_pix_key(key, key_type):
        print(f"Chave {key_type} válida")
        return 0
    print(f"Chave {key_type} inválida: {key}")
    return 1


def _cmd_status(args: list[str]) -> int:
    import requests.exceptions

    from smartpdv.services.exceptions import PaymentStatusError
    from smartpdv.services.payment_status import check_payment_status, provider_from_config
    from smartpdv.utils.formatters import format_brl

    if len(args) != 1:
        print(USAGE)
        return 2
    try:
        status = check_payment_status(args[0], provider_from_config())
    except (PaymentStatusError, requests.exceptions.RequestException, ValueError) as e:
        print(f"Erro: {e}")
        return 1
    line = f"{args[0]}: {status.status}"
    if status.amount is not None:
        line += f" ({format_brl(status.amount)})"
    if status.settled_at is not None:
        line += f" em {status.settled_at.isoformat()}"
    print(line)
    return 0


def _cmd_cupons(args: list[str]) -> int:
    from smartpdv.services.coupons import load_catalog
    from smartpdv.utils.formatters import format_brl

    if args:
        print(USAGE)
        return 2
    for coupon in load_catalog():
        if not coupon.active:
            continue
        if coupon.kind == "percentage":
            line = f"{coupon.code}: {coupon.value.normalize():f}%"
        else:
            line = f"{coupon.code}: {format_brl(coupon.value)}"
        if coupon.min_purchase is not None:
            line += f" (minimo {format_brl(coupon.min_purchase)})"
        if coupon.max_discount is not None:
            line += f" (ate {format_brl(coupon.max_discount)})"
        print(line)
    return 0


def main() -> None:
    """Entry point for the smartpdv command."""
    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        return

    command, rest = args[0], args[1:]
    if command == "init":
        _init_config()
        return
    if command == "chave-aleatoria":
        from smartpdv.services.pix_codec import generate_random_pix_key

        print(generate_random_pix_key())
        return

    handlers = {"pix": _cmd_pix, "chave": _cmd_chave, "status": _cmd_status, "cupons": _cmd_cupons}
    handler = handlers.get(command)
    if handler is None:
        print(f"Comando desconhecido: {command}")
        print(USAGE)
        sys.exit(2)
    code = handler(rest)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
