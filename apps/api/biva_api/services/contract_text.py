"""Plain-text rendering of rental and sale agreements.

The text is stored on the contract at creation time so both parties sign
exactly what was generated; PDF export is left to the presentation layer.
"""
from __future__ import annotations

import math
from datetime import date
from decimal import Decimal

from ..core.config import settings
from ..models.contract import ContractType
from ..models.property import Property
from ..models.user import User

NOT_PROVIDED = "Não fornecido"
RENTAL_LAW = "Lei n.º 26/15 de 23 de Outubro (Lei do Arrendamento Urbano)"


def format_money(value: Decimal | float | int, currency: str | None = None) -> str:
    """Format an amount the way pt-AO does: ``1.250.000,00 Kz``."""

    amount = Decimal(value).quantize(Decimal("0.01"))
    grouped = f"{amount:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{grouped} {currency or settings.contract_currency}"


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def duration_months(start: date, end: date) -> int:
    """Whole months between two dates, rounding partial months up."""

    return max(1, math.ceil((end - start).days / 30))


def _party_block(label: str, user: User) -> list[str]:
    lines = [
        f"{label}:",
        f"Nome: {user.full_name}",
        f"Bilhete de Identidade/Passaporte: {user.bi or NOT_PROVIDED}",
        f"Telefone: {user.phone}",
    ]
    if user.email:
        lines.append(f"Email: {user.email}")
    if user.address:
        lines.append(f"Endereço: {user.address}")
    return lines


def _property_block(prop: Property) -> list[str]:
    location = ", ".join(part for part in (prop.bairro, prop.municipio, prop.provincia) if part)
    amenities = ", ".join(prop.amenities or []) or "Não especificadas"
    lines = [
        "IDENTIFICAÇÃO DO IMÓVEL",
        "",
        f"Designação: {prop.title}",
        f"Tipo: {prop.category.value}",
        f"Localização: {location}",
    ]
    if prop.area:
        lines.append(f"Área: {prop.area}m²")
    lines.extend(
        [
            "Características:",
            f"- {prop.bedrooms} Quarto(s)",
            f"- {prop.bathrooms} Casa(s) de Banho",
            f"- {prop.living_rooms} Sala(s)",
            f"- {prop.kitchens} Cozinha(s)",
            f"Comodidades: {amenities}",
            f"Descrição: {prop.description or NOT_PROVIDED}",
        ]
    )
    return lines


def _signature_block(first_label: str, first: User, second_label: str, second: User, issued_on: date) -> list[str]:
    return [
        f"Data de Celebração: {format_date(issued_on)}",
        "",
        "ASSINATURAS DIGITAIS",
        "",
        "_________________________________",
        first_label,
        f"Nome: {first.full_name}",
        f"BI/Passaporte: {first.bi or NOT_PROVIDED}",
        "",
        "_________________________________",
        second_label,
        f"Nome: {second.full_name}",
        f"BI/Passaporte: {second.bi or NOT_PROVIDED}",
    ]


def render_rental(
    prop: Property,
    owner: User,
    tenant: User,
    *,
    value: Decimal,
    start_date: date,
    end_date: date,
    issued_on: date,
) -> str:
    months = duration_months(start_date, end_date)
    jurisdiction = prop.provincia or settings.contract_jurisdiction_fallback
    lines = [
        "CONTRATO DE ARRENDAMENTO URBANO",
        "",
        f"Em conformidade com a {RENTAL_LAW}",
        "",
        "IDENTIFICAÇÃO DAS PARTES",
        "",
        *_party_block("SENHORIO (Proprietário/Arrendador)", owner),
        "",
        *_party_block("INQUILINO (Arrendatário)", tenant),
        "",
        *_property_block(prop),
        "",
        "CLÁUSULAS CONTRATUAIS",
        "",
        "Cláusula 1ª (Objeto)",
        "O SENHORIO arrenda ao INQUILINO o imóvel acima identificado, para fins de habitação.",
        "",
        "Cláusula 2ª (Prazo)",
        (
            f"O contrato tem a duração de {months} meses, com início em {format_date(start_date)} "
            f"e termo em {format_date(end_date)}, renovando-se por períodos iguais salvo denúncia "
            "com a antecedência mínima de 60 dias."
        ),
        "",
        "Cláusula 3ª (Renda)",
        (
            f"A renda mensal é de {format_money(value)}, a pagar até ao dia 5 de cada mês. "
            "É proibida a exigência de antecipação de rendas superior a 3 meses."
        ),
        "",
        "Cláusula 4ª (Obrigações)",
        (
            "O SENHORIO garante o uso pacífico do imóvel e as reparações de conservação; "
            "o INQUILINO paga pontualmente a renda, conserva o imóvel e não o subarrenda "
            "sem autorização escrita."
        ),
        "",
        "Cláusula 5ª (Restituição)",
        "No termo do contrato o imóvel é restituído no estado em que foi recebido, salvo desgaste normal.",
        "",
        "Cláusula 6ª (Foro)",
        f"Para dirimir litígios as partes elegem o foro da Comarca de {jurisdiction}.",
        "",
        *_signature_block("SENHORIO (Proprietário)", owner, "INQUILINO (Arrendatário)", tenant, issued_on),
    ]
    return "\n".join(lines)


def render_sale(
    prop: Property,
    seller: User,
    buyer: User,
    *,
    value: Decimal,
    start_date: date,
    issued_on: date,
) -> str:
    jurisdiction = prop.provincia or settings.contract_jurisdiction_fallback
    lines = [
        "CONTRATO PROMESSA DE COMPRA E VENDA",
        "",
        "IDENTIFICAÇÃO DAS PARTES",
        "",
        *_party_block("PROMITENTE VENDEDOR", seller),
        "",
        *_party_block("PROMITENTE COMPRADOR", buyer),
        "",
        *_property_block(prop),
        "",
        "CLÁUSULAS CONTRATUAIS",
        "",
        "Cláusula 1ª (Objeto)",
        "O PROMITENTE VENDEDOR promete vender ao PROMITENTE COMPRADOR o imóvel acima identificado.",
        "",
        "Cláusula 2ª (Preço)",
        f"O preço acordado é de {format_money(value)}.",
        "",
        "Cláusula 3ª (Entrega)",
        f"A entrega do imóvel e a escritura ocorrem a partir de {format_date(start_date)}.",
        "",
        "Cláusula 4ª (Foro)",
        f"Para dirimir litígios as partes elegem o foro da Comarca de {jurisdiction}.",
        "",
        *_signature_block("PROMITENTE VENDEDOR", seller, "PROMITENTE COMPRADOR", buyer, issued_on),
    ]
    return "\n".join(lines)


def render_contract(
    contract_type: ContractType,
    prop: Property,
    owner: User,
    counterparty: User,
    *,
    value: Decimal,
    start_date: date,
    end_date: date | None,
    issued_on: date,
) -> str:
    """Render the agreement text matching the contract type."""

    if contract_type == ContractType.RENTAL:
        if end_date is None:
            raise ValueError("Rental contracts need an end date")
        return render_rental(
            prop, owner, counterparty, value=value, start_date=start_date, end_date=end_date, issued_on=issued_on
        )
    return render_sale(prop, owner, counterparty, value=value, start_date=start_date, issued_on=issued_on)
