from __future__ import annotations

import re

# "1. PRECIO:" style sub-headings inside free-text terms
HEADING_PATTERN = re.compile(r"^\d+\.\s+.+:\s*$")

WARRANTY_LINE = "Garantía de 2 años o 2,000 km (lo que ocurra primero)"

DEFAULT_TERMS = """1. PRECIO:
• La comisión del 5% se calcula sobre el precio FOB del vehículo
• Validez de precios: 15 días desde la fecha de emisión
• El flete marítimo varía según tamaño y disponibilidad de embarque
• Incluye: costo del producto, documentos de exportación, embalaje, despacho de aduana y gastos de salida en origen
• El seguro cubre solo el embalaje, no pérdida o daño de mercancía

2. CONDICIONES DE PAGO:
• 30% para reservar y confirmar la orden
• 70% antes del embarque
• Control de calidad según estándar AQL para cada envío
• Si el comprador no paga dentro de 30 días del informe de inspección aprobado, se perderá el depósito y se podrá revender la mercancía

3. RESPONSABILIDADES:
• El proveedor es responsable del despacho de aduana en origen
• El proveedor NO es responsable de daños o retrasos durante el transporte internacional
• El cliente es completamente responsable del despacho de aduana en destino y sus costos asociados

4. GARANTÍA Y RECLAMOS:
• Garantía: 2 años o 2,000 km (lo que ocurra primero)
• Cualquier reclamo debe hacerse directamente al proveedor dentro de 48 horas después de recibir el producto
• No hay garantías adicionales más allá de las contenidas en esta factura proforma

5. TRANSFERENCIAS INTERNACIONALES:
• El comprador debe enviar comprobante bancario y número Swift
• Si el banco beneficiario lo requiere, el comprador debe probar el origen de los fondos transferidos

6. LEY APLICABLE:
• Este acuerdo se rige por las leyes de Panamá
• Jurisdicción: tribunales competentes de Panamá"""


def is_heading(line: str) -> bool:
    return bool(HEADING_PATTERN.match(line))
